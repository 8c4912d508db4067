from __future__ import annotations

from typing import Any, Iterable, Union

import pandas as pd

RecordsLike = Union[pd.DataFrame, Iterable[Any]]


def aggregate_employment(
    records: RecordsLike,
    code_col: str = "industry_code",
    value_col: str = "employment",
) -> pd.Series:
    """Collapse per-period / per-ownership records to one total per industry code.

    Null or non-numeric employment counts as zero; the row still contributes
    its code. Rows without a code cannot be keyed and are dropped.
    """
    frame = records if isinstance(records, pd.DataFrame) else pd.DataFrame(list(records))
    if frame.empty:
        return _empty_table(code_col, value_col)

    missing = [c for c in (code_col, value_col) if c not in frame.columns]
    if missing:
        raise ValueError(f"Employment records missing required columns: {missing}")

    working = frame[[code_col, value_col]].copy()
    working = working[working[code_col].notna()]
    working[code_col] = working[code_col].astype(str).str.strip()
    working[value_col] = pd.to_numeric(working[value_col], errors="coerce").fillna(0.0).astype("float64")

    table = working.groupby(code_col, sort=True)[value_col].sum()
    table.name = value_col
    return table


def table_total(table: pd.Series) -> float:
    """Grand total across every industry code in an EmploymentTable."""
    return float(table.sum())


def _empty_table(code_col: str, value_col: str) -> pd.Series:
    return pd.Series(
        [],
        index=pd.Index([], name=code_col, dtype="object"),
        name=value_col,
        dtype="float64",
    )
