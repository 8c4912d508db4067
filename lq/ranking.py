"""
Rank industries by specialization.

Stage A keeps one hierarchy level. Stage B keeps records at or above the
chosen percentile of the metric and caps the result at `top_n`. With parent
codes supplied (drill-down), only children of already-selected coarser codes
remain candidates, and by default the percentile is taken among those
children. Records whose metric is <NA> never clear the threshold.
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from lq.hierarchy import NaicsHierarchy, level_of

DEFAULT_PERCENTILE = 0.95
DEFAULT_TOP_N = 10
DEFAULT_THRESHOLD_SCOPE = "parents"
VALID_METRICS = ("lq", "flq")
THRESHOLD_SCOPES = ("parents", "level")


def select_level(
    quotients: pd.DataFrame,
    level: int,
    hierarchy: Optional[NaicsHierarchy] = None,
) -> pd.DataFrame:
    """Stage A: rows whose industry code sits exactly at `level`."""
    if hierarchy is None:
        hierarchy = NaicsHierarchy.from_codes(quotients["industry_code"])
    codes = quotients["industry_code"].astype(str).str.strip()
    return quotients[codes.isin(hierarchy.codes_at(level))].copy()


def restrict_to_parents(quotients: pd.DataFrame, parent_codes: Iterable[str]) -> pd.DataFrame:
    """Keep rows whose ancestor at the parents' level is one of `parent_codes`."""
    parents = {str(c).strip() for c in parent_codes}
    if not parents:
        return quotients.iloc[0:0].copy()
    parent_levels = {level_of(c) for c in parents}
    if len(parent_levels) != 1:
        raise ValueError(f"Parent codes span several hierarchy levels: {sorted(parent_levels)}")
    parent_level = parent_levels.pop()

    codes = quotients["industry_code"].astype(str).str.strip()
    hierarchy = NaicsHierarchy.from_codes([*codes, *parents])
    keep = codes.map(lambda code: hierarchy.parent(code, parent_level) in parents)
    return quotients[keep.astype(bool)].copy()


def percentile_threshold(values: pd.Series, percentile: float = DEFAULT_PERCENTILE) -> Optional[float]:
    """Linear-interpolated quantile over the defined values; None if there are none."""
    defined = pd.to_numeric(pd.Series(values), errors="coerce").dropna()
    if defined.empty:
        return None
    return float(defined.astype("float64").quantile(percentile))


def _validate(quotients: pd.DataFrame, metric: str, percentile: float, top_n: int, threshold_scope: str) -> None:
    if metric not in VALID_METRICS:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {VALID_METRICS}")
    if metric not in quotients.columns:
        raise ValueError(f"Metric column {metric!r} not present; compute it before ranking.")
    if not (0.0 <= percentile <= 1.0):
        raise ValueError(f"Percentile must be within [0, 1]; got {percentile}")
    if top_n < 1:
        raise ValueError(f"top_n must be >= 1; got {top_n}")
    if threshold_scope not in THRESHOLD_SCOPES:
        raise ValueError(f"Unknown threshold scope {threshold_scope!r}; expected one of {THRESHOLD_SCOPES}")


def _at_or_above(frame: pd.DataFrame, metric: str, threshold: Optional[float]) -> pd.DataFrame:
    if threshold is None:
        return frame.iloc[0:0].copy()
    values = pd.to_numeric(frame[metric], errors="coerce")
    mask = (values >= threshold).fillna(False).astype(bool)
    return frame[mask].copy()


def rank_quotients(
    quotients: pd.DataFrame,
    level: int,
    metric: str = "lq",
    percentile: float = DEFAULT_PERCENTILE,
    top_n: int = DEFAULT_TOP_N,
    parent_codes: Optional[Iterable[str]] = None,
    threshold_scope: str = DEFAULT_THRESHOLD_SCOPE,
) -> pd.DataFrame:
    """Top industries at `level` by `metric`, with a 1-based `rank` column.

    With `parent_codes`, candidates are first narrowed to children of those
    codes and the percentile is taken among them. `threshold_scope="level"`
    instead takes the percentile across every code at the level and narrows
    afterwards. Ties on the metric are broken by code ascending.
    """
    _validate(quotients, metric, percentile, top_n, threshold_scope)

    hierarchy = NaicsHierarchy.from_codes(quotients["industry_code"])
    candidates = select_level(quotients, level, hierarchy)
    if parent_codes is not None and threshold_scope == "parents":
        candidates = restrict_to_parents(candidates, parent_codes)

    threshold = percentile_threshold(candidates[metric], percentile)
    selected = _at_or_above(candidates, metric, threshold)

    if parent_codes is not None and threshold_scope == "level":
        selected = restrict_to_parents(selected, parent_codes)

    selected = selected.sort_values(
        [metric, "industry_code"],
        ascending=[False, True],
        kind="mergesort",
        na_position="last",
    ).head(top_n)
    selected.insert(0, "rank", range(1, len(selected) + 1))
    return selected.reset_index(drop=True)
