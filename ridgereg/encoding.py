"""
Caller-owned category tables.

Categorical covariates have to be numeric before fitting. Rather than letting
the estimator guess an encoding (``factor -> integer``), the caller supplies an
explicit table per column, e.g. ``{"carrier": {"AA": 0, "DL": 1, "UA": 2}}``.
The same table is stored on the fitted model and reapplied at predict time.
"""

from __future__ import annotations

import json
import numbers
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import pandas as pd

from .errors import InvalidInputError


def _lookup(table: Mapping[Any, float], value: Any) -> Any:
    """Find ``value`` in ``table``, also trying its string form.

    JSON object keys are always strings while ``read_csv`` loads coded
    categories (month, hour) as numbers; ``3`` and ``3.0`` both match ``"3"``.
    """
    if value in table:
        return table[value]
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    key = str(value)
    if key in table:
        return table[key]
    raise KeyError(value)


@dataclass(frozen=True)
class CategoryEncoding:
    """Per-column category tables ``column -> {category -> numeric code}``."""

    tables: Mapping[str, Mapping[Any, float]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        tables = {}
        for column, table in dict(self.tables).items():
            codes = {}
            for category, code in dict(table).items():
                if isinstance(code, bool) or not isinstance(code, numbers.Real):
                    raise InvalidInputError(
                        f"Code for category {category!r} in column '{column}' must be numeric, got {code!r}."
                    )
                codes[category] = float(code)
            tables[str(column)] = codes
        object.__setattr__(self, "tables", tables)

    @property
    def columns(self) -> list:
        return list(self.tables)

    def __bool__(self) -> bool:
        return bool(self.tables)

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of ``df`` with every encoded column replaced by its codes.

        Columns named in the table but absent from ``df`` are left alone; the
        covariate check downstream reports them if they are needed. Missing
        values stay missing so that validation can reject them.
        """
        if not self.tables:
            return df
        out = df.copy()
        for column, table in self.tables.items():
            if column not in out.columns:
                continue
            values = out[column]
            present = values.notna()
            unknown = set()
            for v in values[present]:
                try:
                    _lookup(table, v)
                except KeyError:
                    unknown.add(str(v))
            if unknown:
                raise InvalidInputError(
                    f"Column '{column}' has categories without a code: {', '.join(sorted(unknown))}"
                )
            out[column] = values.map(lambda v: _lookup(table, v) if pd.notna(v) else float("nan")).astype(float)
        return out

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {column: {str(k): v for k, v in table.items()} for column, table in self.tables.items()}

    @classmethod
    def from_json(cls, path: Path) -> "CategoryEncoding":
        with Path(path).open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict) or not all(isinstance(t, dict) for t in raw.values()):
            raise InvalidInputError(f"Encoding file {path} must map column names to {{category: code}} objects.")
        return cls(raw)
