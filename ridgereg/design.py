"""
Observation-set handling shared by fit and predict.

Turns caller data (a DataFrame, a column mapping, or a list of records) into
validated float matrices, resolves which columns are covariates, and parses
the small R-style formula subset ``y ~ a + b`` / ``y ~ .``.
"""

from __future__ import annotations

import numbers
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from .errors import InvalidInputError

INTERCEPT = "(Intercept)"


def to_frame(data: Any) -> pd.DataFrame:
    """Coerce an observation set into a DataFrame without touching its values."""
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, Mapping):
        # a single record: every value is a scalar
        if data and all(np.ndim(v) == 0 for v in data.values()):
            return pd.DataFrame([dict(data)])
        try:
            return pd.DataFrame(dict(data))
        except ValueError as exc:
            raise InvalidInputError(f"Could not build an observation set from columns: {exc}") from exc
    if isinstance(data, (str, bytes)) or not isinstance(data, Sequence):
        raise InvalidInputError(
            f"Expected a DataFrame, a column mapping or a sequence of records, got {type(data).__name__}."
        )
    records = list(data)
    bad = [i for i, rec in enumerate(records) if not isinstance(rec, Mapping)]
    if bad:
        raise InvalidInputError(f"Observations must be mappings; rows {bad[:5]} are not.")
    return pd.DataFrame(records)


def parse_formula(formula: str) -> Tuple[str, Optional[List[str]]]:
    """
    Split ``"response ~ a + b"`` into ``("response", ["a", "b"])``.

    A right-hand side of ``.`` means every other column and is returned as
    ``None``. Names may be wrapped in backticks when they contain spaces.
    """
    if not isinstance(formula, str) or formula.count("~") != 1:
        raise InvalidInputError(f"Formula must look like 'response ~ a + b', got {formula!r}.")
    lhs, rhs = (part.strip() for part in formula.split("~"))
    response = lhs.strip("`").strip()
    if not response:
        raise InvalidInputError(f"Formula {formula!r} has no response.")
    if rhs == ".":
        return response, None
    terms = [term.strip().strip("`").strip() for term in rhs.split("+")]
    if not rhs or any(not term for term in terms):
        raise InvalidInputError(f"Formula {formula!r} has an empty term.")
    if "." in terms:
        raise InvalidInputError(f"'.' cannot be combined with other terms in {formula!r}.")
    return response, terms


def resolve_covariates(
    columns: Sequence[Any],
    response: Any,
    covariates: Optional[Sequence[Any]] = None,
) -> List[Any]:
    """Return the ordered covariate list, defaulting to every non-response column."""
    columns = list(columns)
    if response not in columns:
        raise InvalidInputError(f"Response '{response}' not found in columns: {columns}")
    if covariates is None:
        chosen = [c for c in columns if c != response]
    else:
        if isinstance(covariates, str):
            covariates = [covariates]
        chosen = list(covariates)
        if response in chosen:
            raise InvalidInputError(f"Response '{response}' cannot also be a covariate.")
        dupes = sorted({str(c) for c in chosen if chosen.count(c) > 1})
        if dupes:
            raise InvalidInputError(f"Duplicate covariates: {', '.join(dupes)}")
        missing = [c for c in chosen if c not in columns]
        if missing:
            raise InvalidInputError(f"Covariates not found in data: {missing}")
    if INTERCEPT in chosen:
        raise InvalidInputError(f"'{INTERCEPT}' is reserved for the intercept.")
    return chosen


def _column_values(series: pd.Series, name: Any) -> np.ndarray:
    if ptypes.is_bool_dtype(series) or ptypes.is_complex_dtype(series):
        raise InvalidInputError(f"Column '{name}' has dtype {series.dtype}; expected real numbers.")
    if ptypes.is_numeric_dtype(series):
        values = series.to_numpy(dtype=float, na_value=np.nan)
    else:
        # object columns pass only if every entry is already a real number
        offending = [
            v for v in series.tolist()
            if v is not None and v is not pd.NA and (isinstance(v, bool) or not isinstance(v, numbers.Real))
        ]
        if offending:
            shown = ", ".join(repr(v) for v in offending[:5])
            raise InvalidInputError(f"Column '{name}' has non-numeric values: {shown}")
        values = np.array([np.nan if v is None or v is pd.NA else float(v) for v in series.tolist()], dtype=float)
    if np.isnan(values).any():
        rows = np.flatnonzero(np.isnan(values))[:5].tolist()
        raise InvalidInputError(f"Column '{name}' has missing values (row positions {rows}).")
    if not np.isfinite(values).all():
        raise InvalidInputError(f"Column '{name}' has non-finite values.")
    return values


def numeric_matrix(df: pd.DataFrame, columns: Sequence[Any]) -> np.ndarray:
    """Return ``df[columns]`` as an ``(n, len(columns))`` float array, rejecting bad cells."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise InvalidInputError(f"Columns not found in data: {missing}")
    repeated = sorted({str(c) for c in columns if (df.columns == c).sum() > 1})
    if repeated:
        raise InvalidInputError(f"Data has duplicate column labels: {', '.join(repeated)}")
    if len(df) == 0:
        raise InvalidInputError("Observation set is empty.")
    matrix = np.empty((len(df), len(columns)), dtype=float)
    for j, col in enumerate(columns):
        matrix[:, j] = _column_values(df[col], col)
    return matrix


def numeric_vector(df: pd.DataFrame, column: Any) -> np.ndarray:
    return numeric_matrix(df, [column])[:, 0]


def add_intercept(Z: np.ndarray) -> np.ndarray:
    """Prepend the column of ones."""
    return np.column_stack([np.ones(Z.shape[0]), Z])
