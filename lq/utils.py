from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd


def log(msg: str, tag: str = "LQ") -> None:
    """Lightweight logger for terminal visibility during runs."""
    print(f"[{tag}] {msg}")


def parse_bool(value: str | bool | None, default: bool = False) -> bool:
    """Parse common CLI truthy/falsey strings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y"}:
        return True
    if normalized in {"0", "false", "f", "no", "n"}:
        return False
    return default


def safe_divide(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """Return numerator/denominator or None when invalid."""
    if numerator is None or denominator in (None, 0):
        return None
    if isinstance(denominator, float) and math.isnan(denominator):
        return None
    if isinstance(numerator, float) and math.isnan(numerator):
        return None
    return numerator / denominator


def safe_divide_series(numerator: pd.Series, denominator: pd.Series | float | None) -> pd.Series:
    """Element-wise division returning nullable Float64 with <NA> where undefined."""
    num = _to_float(numerator)
    if denominator is None:
        return pd.Series(pd.NA, index=num.index, dtype="Float64")
    if isinstance(denominator, pd.Series):
        den = _to_float(denominator)
    else:
        den = float(denominator)
    with np.errstate(divide="ignore", invalid="ignore"):
        out = num / den
    valid = np.isfinite(out) & (den != 0)
    return out.where(valid).astype("Float64")


def _to_float(values: pd.Series) -> pd.Series:
    # Masked dtypes carry <NA>; plain float64 keeps the numpy ops below simple.
    numeric = pd.to_numeric(values, errors="coerce")
    return pd.Series(numeric.to_numpy(dtype="float64", na_value=np.nan), index=values.index)


def round_to_multiple(values: pd.Series, base: int = 10) -> pd.Series:
    """Round half-up to the nearest multiple of `base`, keeping missing values."""
    numeric = _to_float(values)
    rounded = np.floor(numeric / base + 0.5) * base
    return rounded.round().astype("Int64")
