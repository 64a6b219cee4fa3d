"""
Closed-form ridge regression.

Ridge regression minimises

    ||y - X beta||^2 + lambda * ||beta[1:]||^2

where ``X = [1 | Z]`` and ``Z`` holds the covariates standardised with the
mean and standard deviation of the fitting data. The minimiser satisfies the
regularised normal equations

    (X'X + lambda * I') beta = X'y

with ``I'`` the identity whose intercept entry is zeroed, so the intercept is
never shrunk. ``X'X`` is never formed: because ``Z`` is centred the intercept
separates from the slopes, and the slopes come from the SVD of ``Z``, which
keeps the error proportional to the condition number of ``Z`` rather than its
square.

``fit_ridge`` returns an immutable :class:`RidgeFit`; predicting is a pure
function of that fit and the new observations, so a lambda sweep can fit many
models side by side without sharing any state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .design import (
    INTERCEPT,
    add_intercept,
    numeric_matrix,
    numeric_vector,
    parse_formula,
    resolve_covariates,
    to_frame,
)
from .encoding import CategoryEncoding
from .errors import InvalidInputError, SingularSystemError

logger = logging.getLogger(__name__)


def _readonly(values: np.ndarray) -> np.ndarray:
    out = np.array(values, dtype=float, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True, eq=False)
class RidgeFit:
    """
    Fitted state of one ridge regression.

    Attributes
    ----------
    response:
        Name of the response column.
    covariates:
        Covariate names in design-matrix order (intercept excluded).
    lam:
        Penalty the model was fitted with.
    means, scales:
        Per-covariate standardisation captured at fit time; reused unchanged
        by :meth:`predict`.
    beta:
        Solved coefficients in the standardised space, intercept first.
    encoding:
        Category tables applied to the data before fitting and predicting.
    n_obs:
        Number of observations used for the fit.
    """

    response: Any
    covariates: tuple
    lam: float
    means: np.ndarray = field(repr=False)
    scales: np.ndarray = field(repr=False)
    beta: np.ndarray = field(repr=False)
    encoding: CategoryEncoding = field(default_factory=CategoryEncoding, repr=False)
    n_obs: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "covariates", tuple(self.covariates))
        for name in ("means", "scales", "beta"):
            object.__setattr__(self, name, _readonly(getattr(self, name)))
        if self.beta.shape != (len(self.covariates) + 1,):
            raise InvalidInputError(
                f"beta has shape {self.beta.shape}; expected ({len(self.covariates) + 1},)."
            )

    def __setstate__(self, state: dict) -> None:
        # unpickling skips __post_init__
        self.__dict__.update(state)
        for name in ("means", "scales", "beta"):
            object.__setattr__(self, name, _readonly(state[name]))

    @property
    def column_names(self) -> List[Any]:
        """Design-matrix column names, intercept first."""
        return [INTERCEPT, *self.covariates]

    def predict(self, data: Any) -> np.ndarray:
        return predict_ridge(self, data)

    def coefficients(self, standardized: bool = False) -> Dict[Any, float]:
        """
        Coefficients keyed by column name, with the intercept under ``"(Intercept)"``.

        By default the slopes are mapped back to the original covariate units
        (``slope / scale``) and the intercept absorbs the centring, which makes
        them comparable with an ordinary least-squares fit on the raw data.
        ``standardized=True`` returns ``beta`` exactly as solved.
        """
        if standardized:
            values = self.beta
        else:
            slopes = self.beta[1:] / self.scales
            intercept = self.beta[0] - float(slopes @ self.means)
            values = np.concatenate([[intercept], slopes])
        return {name: float(value) for name, value in zip(self.column_names, values)}

    def coefficient_series(self, standardized: bool = False) -> pd.Series:
        coefs = self.coefficients(standardized=standardized)
        return pd.Series(list(coefs.values()), index=list(coefs.keys()), name=self.lam, dtype=float)

    def to_dict(self) -> dict:
        """Lightweight serialization for downstream reporting."""
        return {
            "response": str(self.response),
            "covariates": [str(c) for c in self.covariates],
            "lambda": self.lam,
            "n_obs": self.n_obs,
            "means": self.means.tolist(),
            "scales": self.scales.tolist(),
            "beta": self.beta.tolist(),
            "coefficients": {str(k): v for k, v in self.coefficients().items()},
            "standardized_coefficients": {str(k): v for k, v in self.coefficients(standardized=True).items()},
            "encoding": self.encoding.to_dict(),
        }


def _prepare(data: Any, encoding: Optional[CategoryEncoding]) -> pd.DataFrame:
    df = to_frame(data)
    if len(df) == 0:
        raise InvalidInputError("Observation set is empty.")
    if encoding:
        df = encoding.apply(df)
    return df


def _solve(Z: np.ndarray, y: np.ndarray, lam: float) -> np.ndarray:
    """
    Solve for ``[intercept, slopes]`` given centred, scaled covariates ``Z``.

    Centring decouples the intercept (``mean(y)``) from the slopes, which come
    from the thin SVD ``Z = U diag(s) V'`` as ``V diag(s / (s^2 + lam)) U'(y - mean(y))``.
    Singular values at or below the rank tolerance are treated as exact zeros
    and contribute nothing; at ``lam == 0`` they make the system singular.
    """
    n_rows, n_cols = Z.shape
    y_mean = float(y.mean())
    if n_cols == 0:
        return np.array([y_mean])

    U, s, Vt = np.linalg.svd(Z, full_matrices=False)
    tol = (s.max() if s.size else 0.0) * max(n_rows, n_cols) * np.finfo(float).eps
    keep = s > tol
    if lam == 0:
        rank = int(keep.sum())
        if rank < n_cols:
            raise SingularSystemError(
                f"Design matrix has rank {rank} < {n_cols} covariates; "
                "the unpenalised system has no unique solution. Use lambda > 0."
            )
    shrink = np.zeros_like(s)
    shrink[keep] = s[keep] / (s[keep] ** 2 + lam)
    slopes = Vt.T @ (shrink * (U.T @ (y - y_mean)))
    intercept = y_mean - float(Z.mean(axis=0) @ slopes)
    return np.concatenate([[intercept], slopes])


def fit_ridge(
    data: Any,
    response: Any,
    lam: float = 0.0,
    covariates: Optional[Sequence[Any]] = None,
    encoding: Optional[CategoryEncoding] = None,
) -> RidgeFit:
    """
    Fit ridge regression on an observation set.

    Parameters
    ----------
    data:
        DataFrame, column mapping ``{name: values}`` or sequence of records.
    response:
        Column holding the response.
    lam:
        Penalty strength (>= 0). ``0`` is ordinary least squares.
    covariates:
        Ordered covariate names; defaults to every column except the response.
    encoding:
        Category tables turning categorical covariates into numeric codes.

    Raises
    ------
    InvalidInputError
        Empty data, unknown response or covariate, missing or non-numeric values.
    SingularSystemError
        ``lam == 0`` and the design matrix is rank-deficient.
    """
    encoding = encoding if encoding is not None else CategoryEncoding()
    df = _prepare(data, encoding)
    cols = resolve_covariates(df.columns, response, covariates)
    Z = numeric_matrix(df, cols)
    y = numeric_vector(df, response)
    lam = float(lam)

    if cols:
        scaler = StandardScaler(with_mean=True, with_std=True).fit(Z)
        means, scales = scaler.mean_, scaler.scale_
    else:
        means, scales = np.zeros(0), np.ones(0)

    Zs = (Z - means) / scales
    logger.debug("Fitting ridge: n=%d, p=%d, lambda=%g", Zs.shape[0], Zs.shape[1], lam)
    beta = _solve(Zs, y, lam)

    return RidgeFit(
        response=response,
        covariates=tuple(cols),
        lam=lam,
        means=means,
        scales=scales,
        beta=beta,
        encoding=encoding,
        n_obs=int(Zs.shape[0]),
    )


def fit_ridge_formula(
    formula: str,
    data: Any,
    lam: float = 0.0,
    encoding: Optional[CategoryEncoding] = None,
) -> RidgeFit:
    """Fit from an R-style formula, ``"y ~ a + b"`` or ``"y ~ ."``."""
    response, covariates = parse_formula(formula)
    return fit_ridge(data, response, lam=lam, covariates=covariates, encoding=encoding)


def predict_ridge(fit: RidgeFit, data: Any) -> np.ndarray:
    """
    Predict the response for new observations.

    The fit-time means and scales are applied; nothing is estimated from
    ``data``. Columns other than the fitted covariates (the response included)
    are ignored. Returns one prediction per row, in input order.
    """
    df = _prepare(data, fit.encoding)
    Z = numeric_matrix(df, fit.covariates)
    X = add_intercept((Z - fit.means) / fit.scales)
    return X @ fit.beta
