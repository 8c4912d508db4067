"""
Location Quotient (LQ) and Flegg's adjusted LQ (FLQ).

    share_local(i)     = emp_local(i) / sum(emp_local)
    share_reference(i) = emp_reference(i) / sum(emp_reference)
    LQ(i)              = share_local(i) / share_reference(i)
    FLQ(i)             = LQ(i) * log2(1 + sum(emp_local) / sum(emp_intermediate)) ** lambda

Totals are taken over the full employment tables before they are joined, so
codes dropped by the inner join still count toward each region's size.
Undefined ratios come back as <NA> in nullable Float64 columns.
"""

from __future__ import annotations

import math
from typing import Optional

import pandas as pd

from lq.aggregate import table_total
from lq.utils import safe_divide, safe_divide_series

DEFAULT_FLEGG_LAMBDA = 0.2

QUOTIENT_COLUMNS = [
    "industry_code",
    "employment_local",
    "employment_reference",
    "share_local",
    "share_reference",
    "lq",
]


def validate_lambda(flegg_lambda: float) -> float:
    value = float(flegg_lambda)
    if not (0.0 < value <= 1.0):
        raise ValueError(f"Flegg lambda must be in (0, 1]; got {flegg_lambda}")
    return value


def flegg_factor(
    local_total: Optional[float],
    intermediate_total: Optional[float],
    flegg_lambda: float = DEFAULT_FLEGG_LAMBDA,
) -> Optional[float]:
    """Regional-scale dampening factor shared by every industry in a run."""
    flegg_lambda = validate_lambda(flegg_lambda)
    region_share = safe_divide(local_total, intermediate_total)
    if region_share is None or region_share < 0:
        return None
    return math.log2(1.0 + region_share) ** flegg_lambda


def compute_location_quotients(
    local: pd.Series,
    reference: pd.Series,
    intermediate: Optional[pd.Series] = None,
    flegg_lambda: float = DEFAULT_FLEGG_LAMBDA,
) -> pd.DataFrame:
    """Per-industry LQ (and FLQ when an intermediate table is given)."""
    if intermediate is not None:
        flegg_lambda = validate_lambda(flegg_lambda)

    local_total = table_total(local)
    reference_total = table_total(reference)

    joined = pd.concat(
        [local.rename("employment_local"), reference.rename("employment_reference")],
        axis=1,
        join="inner",
    )
    joined.index.name = "industry_code"
    joined = joined.sort_index().reset_index()
    joined["industry_code"] = joined["industry_code"].astype(str)

    joined["share_local"] = safe_divide_series(joined["employment_local"], local_total)
    joined["share_reference"] = safe_divide_series(joined["employment_reference"], reference_total)
    joined["lq"] = safe_divide_series(joined["share_local"], joined["share_reference"])

    cols = list(QUOTIENT_COLUMNS)
    if intermediate is not None:
        factor = flegg_factor(local_total, table_total(intermediate), flegg_lambda)
        if factor is None:
            joined["flq"] = pd.Series(pd.NA, index=joined.index, dtype="Float64")
        else:
            joined["flq"] = (joined["lq"] * factor).astype("Float64")
        cols.append("flq")
    return joined[cols]
