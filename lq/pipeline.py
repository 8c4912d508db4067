#!/usr/bin/env python3
"""
Industry Specialization (Location Quotient) Runner
--------------------------------------------------
Purpose
  Rank San Luis Obispo County industries by how concentrated they are
  compared with the nation (LQ) and, with California as the intermediate
  region, by Flegg's adjusted LQ (FLQ).

Data sources
  - BLS QCEW open-data area slices (local, intermediate, reference areas),
    read from --raw_template or downloaded into --cache_dir with --fetch true.
  - Optional NAICS title lookup (Census 2-6 digit codes or BLS titles CSV).

Method
  For each level in --levels (coarse to fine):
    1. keep records whose code length equals the level, per region
    2. sum employment per code (periods and ownerships collapse)
    3. LQ = local share / reference share; FLQ = LQ * log2(1 + local/intermediate) ** lambda
    4. with --drilldown, narrow to children of the previous level's picks;
       keep codes at or above the --percentile of the metric among them,
       top --top_n (--threshold_scope level takes the percentile level-wide)

How to run
  python -m lq.pipeline --year 2023 --local_area 06079 --intermediate_area 06000 \
      --reference_area US000 --levels 3 4 --use_flq true --fetch true
"""

from __future__ import annotations

import argparse
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from lq.aggregate import aggregate_employment
from lq.quotients import DEFAULT_FLEGG_LAMBDA, compute_location_quotients, validate_lambda
from lq.ranking import (
    DEFAULT_PERCENTILE,
    DEFAULT_THRESHOLD_SCOPE,
    DEFAULT_TOP_N,
    THRESHOLD_SCOPES,
    rank_quotients,
)
from lq.report import format_ranked_table, write_outputs
from lq.utils import log, parse_bool
from scripts.qcew.fetch_qcew_area import DEFAULT_CACHE_DIR, fetch_area_csv
from scripts.qcew.qcew_prep_naics_detail import (
    DEFAULT_OWNERSHIP_CODES,
    load_area_records,
    records_at_level,
)
from scripts.refs.prep_ref_naics_titles import load_naics_titles

DEFAULT_YEAR = 2023
DEFAULT_LOCAL_AREA = "06079"
DEFAULT_INTERMEDIATE_AREA = "06000"
DEFAULT_REFERENCE_AREA = "US000"
DEFAULT_LEVELS = [3, 4]
DEFAULT_OUTDIR = "artifacts/lq"
DEFAULT_RAW_TEMPLATE = DEFAULT_CACHE_DIR + "/{year}.a.area.{area}.csv"


@dataclass(frozen=True)
class LqConfig:
    year: int = DEFAULT_YEAR
    local_area: str = DEFAULT_LOCAL_AREA
    intermediate_area: Optional[str] = DEFAULT_INTERMEDIATE_AREA
    reference_area: str = DEFAULT_REFERENCE_AREA
    levels: list[int] = field(default_factory=lambda: list(DEFAULT_LEVELS))
    percentile: float = DEFAULT_PERCENTILE
    top_n: int = DEFAULT_TOP_N
    flegg_lambda: float = DEFAULT_FLEGG_LAMBDA
    use_flq: bool = True
    drilldown: bool = True
    threshold_scope: str = DEFAULT_THRESHOLD_SCOPE
    ownership_codes: list[str] = field(default_factory=lambda: list(DEFAULT_OWNERSHIP_CODES))
    raw_template: str = DEFAULT_RAW_TEMPLATE
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    titles_path: Optional[Path] = None
    outdir: Path = Path(DEFAULT_OUTDIR)
    fetch: bool = False

    @property
    def metric(self) -> str:
        return "flq" if self.use_flq else "lq"

    @property
    def metrics(self) -> list[str]:
        return ["lq", "flq"] if self.intermediate_area else ["lq"]


def validate_config(config: LqConfig) -> None:
    if config.use_flq and not config.intermediate_area:
        raise ValueError("FLQ ranking needs an intermediate area (e.g. the state containing the county).")
    if config.intermediate_area:
        validate_lambda(config.flegg_lambda)
    if not config.levels:
        raise ValueError("At least one hierarchy level is required.")
    if any(level < 2 for level in config.levels):
        raise ValueError(f"NAICS levels start at 2 digits; got {config.levels}")
    if not (0.0 <= config.percentile <= 1.0):
        raise ValueError(f"Percentile must be within [0, 1]; got {config.percentile}")
    if config.top_n < 1:
        raise ValueError(f"top_n must be >= 1; got {config.top_n}")
    if config.threshold_scope not in THRESHOLD_SCOPES:
        raise ValueError(f"Unknown threshold scope {config.threshold_scope!r}")


def resolve_raw_path(config: LqConfig, area: str) -> Path:
    raw_path = Path(config.raw_template.format(year=config.year, area=area))
    if raw_path.exists():
        return raw_path
    if config.fetch:
        return fetch_area_csv(config.year, area, config.cache_dir)
    raise FileNotFoundError(
        f"QCEW area file not found for {area} ({config.year}): {raw_path}. Re-run with --fetch true to download it."
    )


def load_region(config: LqConfig, area: str) -> pd.DataFrame:
    raw_path = resolve_raw_path(config, area)
    records = load_area_records(raw_path, config.year, area=area, ownership_codes=config.ownership_codes)
    log(f"Loaded {len(records):,} records for area {area} from {raw_path}")
    return records


def level_quotients(
    local: pd.DataFrame,
    reference: pd.DataFrame,
    intermediate: Optional[pd.DataFrame],
    level: int,
    flegg_lambda: float = DEFAULT_FLEGG_LAMBDA,
) -> pd.DataFrame:
    """Aggregate each region at one hierarchy level and compute LQ/FLQ."""
    local_table = aggregate_employment(records_at_level(local, level))
    reference_table = aggregate_employment(records_at_level(reference, level))
    intermediate_table = (
        aggregate_employment(records_at_level(intermediate, level)) if intermediate is not None else None
    )
    return compute_location_quotients(local_table, reference_table, intermediate_table, flegg_lambda)


def rank_levels(
    local: pd.DataFrame,
    reference: pd.DataFrame,
    intermediate: Optional[pd.DataFrame],
    config: LqConfig,
) -> dict[int, pd.DataFrame]:
    """Ranked (unformatted) tables per level, coarse to fine."""
    ranked_by_level: dict[int, pd.DataFrame] = {}
    parent_codes: Optional[list[str]] = None
    for level in sorted(set(config.levels)):
        quotients = level_quotients(local, reference, intermediate, level, config.flegg_lambda)
        undefined = int(quotients[config.metric].isna().sum())
        if undefined:
            log(f"NAICS{level}: {undefined:,} of {len(quotients):,} codes have an undefined {config.metric}.")
        ranked = rank_quotients(
            quotients,
            level,
            metric=config.metric,
            percentile=config.percentile,
            top_n=config.top_n,
            parent_codes=parent_codes if config.drilldown else None,
            threshold_scope=config.threshold_scope,
        )
        log(f"NAICS{level}: {len(quotients):,} joined codes, {len(ranked)} ranked.")
        ranked_by_level[level] = ranked
        parent_codes = ranked["industry_code"].tolist()
    return ranked_by_level


def run(config: LqConfig) -> dict[int, pd.DataFrame]:
    validate_config(config)
    local = load_region(config, config.local_area)
    reference = load_region(config, config.reference_area)
    intermediate = load_region(config, config.intermediate_area) if config.intermediate_area else None
    titles = load_naics_titles(config.titles_path) if config.titles_path else {}

    ranked_by_level = rank_levels(local, reference, intermediate, config)
    return {
        level: format_ranked_table(ranked, titles, config.metrics)
        for level, ranked in ranked_by_level.items()
    }


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rank industries by location quotient.")
    parser.add_argument("--year", type=int, default=DEFAULT_YEAR)
    parser.add_argument("--local_area", default=DEFAULT_LOCAL_AREA)
    parser.add_argument("--intermediate_area", default=DEFAULT_INTERMEDIATE_AREA, help="Set to 'none' to skip FLQ.")
    parser.add_argument("--reference_area", default=DEFAULT_REFERENCE_AREA)
    parser.add_argument("--levels", nargs="+", type=int, default=DEFAULT_LEVELS)
    parser.add_argument("--percentile", type=float, default=DEFAULT_PERCENTILE)
    parser.add_argument("--top_n", type=int, default=DEFAULT_TOP_N)
    parser.add_argument("--flegg_lambda", type=float, default=DEFAULT_FLEGG_LAMBDA)
    parser.add_argument("--use_flq", default="true")
    parser.add_argument("--drilldown", default="true")
    parser.add_argument("--threshold_scope", choices=THRESHOLD_SCOPES, default=DEFAULT_THRESHOLD_SCOPE)
    parser.add_argument("--ownership_codes", nargs="+", default=list(DEFAULT_OWNERSHIP_CODES))
    parser.add_argument("--raw_template", default=DEFAULT_RAW_TEMPLATE, help="Use '{year}' and '{area}' placeholders.")
    parser.add_argument("--cache_dir", default=DEFAULT_CACHE_DIR)
    parser.add_argument("--titles_path", default=None)
    parser.add_argument("--outdir", default=DEFAULT_OUTDIR)
    parser.add_argument("--fetch", default="false")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> LqConfig:
    intermediate = args.intermediate_area
    if intermediate is not None and intermediate.strip().lower() in {"", "none"}:
        intermediate = None
    return LqConfig(
        year=args.year,
        local_area=str(args.local_area),
        intermediate_area=intermediate,
        reference_area=str(args.reference_area),
        levels=list(args.levels),
        percentile=args.percentile,
        top_n=args.top_n,
        flegg_lambda=args.flegg_lambda,
        use_flq=parse_bool(args.use_flq, default=True) and intermediate is not None,
        drilldown=parse_bool(args.drilldown, default=True),
        threshold_scope=args.threshold_scope,
        ownership_codes=[str(o) for o in args.ownership_codes],
        raw_template=args.raw_template,
        cache_dir=Path(args.cache_dir),
        titles_path=Path(args.titles_path) if args.titles_path else None,
        outdir=Path(args.outdir),
        fetch=parse_bool(args.fetch),
    )


def main(argv: Optional[list[str]] = None) -> None:
    config = config_from_args(parse_args(argv))
    log(f"Year: {config.year}")
    log(f"Areas: local={config.local_area} intermediate={config.intermediate_area or 'None'} reference={config.reference_area}")
    log(f"Levels: {config.levels} (drilldown={config.drilldown}, threshold_scope={config.threshold_scope})")
    log(f"Ranking metric: {config.metric} (percentile={config.percentile}, top_n={config.top_n}, lambda={config.flegg_lambda})")
    try:
        tables = run(config)
    except Exception as exc:
        log(f"LQ run failed: {exc!r}")
        raise

    params = {k: v for k, v in asdict(config).items() if k not in {"raw_template", "cache_dir", "outdir", "fetch"}}
    params["metric"] = config.metric
    csv_paths, summary_path = write_outputs(tables, config.outdir, config.year, params)
    for path in csv_paths:
        log(f"Wrote {path}")
    log(f"Wrote summary: {summary_path}")


if __name__ == "__main__":
    main()
