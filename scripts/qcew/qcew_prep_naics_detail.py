#!/usr/bin/env python3
"""
qcew_prep_naics_detail.py
-------------------------
Turn a raw QCEW area slice into employment records keyed by detailed NAICS
code, ready for LQ aggregation:

    industry_code, own_code, period, employment

Filters:
  - year == --year (string comparison, same as the benchmark prep scripts)
  - area_fips == --area when given (open-data slices already hold one area)
  - own_code in --ownership_codes (default federal, state, local, private;
    own_code 0 is the all-ownership total and would double count)
  - NAICS detail rows only: agglvl_code ending 4-8 (sector .. 6-digit). When
    the file has no agglvl_code, QCEW total/domain/supersector codes are
    dropped by code instead.
  - hyphenated sector ranges (31-33, 44-45, 48-49) are dropped; their codes
    do not sit on the digit-length hierarchy.

Periods:
  Annual files (qtr == "A") contribute annual_avg_emplvl once per row.
  Quarterly files contribute month1..month3_emplvl as one record per month.
  Suppressed cells (non-numeric) become null; aggregation counts them as 0.

Usage:
  python scripts/qcew/qcew_prep_naics_detail.py \
      --qcew_raw data_raw/qcew/areas/2023.a.area.06079.csv \
      --year 2023 --out data_clean/qcew/qcew_naics_detail_06079_2023.csv
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from lq.hierarchy import level_mask

DEFAULT_OWNERSHIP_CODES = ("1", "2", "3", "5")
NAICS_DETAIL_AGG_SUFFIXES = {"4", "5", "6", "7", "8"}
# QCEW "10" total, "101"/"102" domains, "1011".."1029" supersectors.
QCEW_AGGREGATE_CODES = {
    "10",
    "101",
    "102",
    "1011",
    "1012",
    "1013",
    "1021",
    "1022",
    "1023",
    "1024",
    "1025",
    "1026",
    "1027",
    "1028",
    "1029",
}
MONTH_COLUMNS = ["month1_emplvl", "month2_emplvl", "month3_emplvl"]
RECORD_COLUMNS = ["industry_code", "own_code", "period", "employment"]


def log(msg: str) -> None:
    print(f"[QCEW] {msg}")


def normalize_qcew_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Standardize key column names with flexible matching."""
    frame = df.copy()
    if frame.columns.duplicated().any():
        frame = frame.loc[:, ~frame.columns.duplicated()].copy()

    lower = {str(c).strip().lower(): c for c in frame.columns}

    def pick(*opts: str) -> Optional[str]:
        for opt in opts:
            if opt in lower:
                return lower[opt]
        return None

    area = pick("area_fips", "area", "fips")
    ind = pick("industry_code", "naics", "industry")
    year_col = pick("year", "year_num")
    aemp = pick("annual_avg_emplvl", "annual_avg_employment", "annualaverageemployment")
    months = [pick(m, m.replace("_emplvl", "_employment")) for m in MONTH_COLUMNS]
    own = pick("own_code", "ownership", "own")
    agglvl = pick("agglvl_code", "agg_lvl_cd", "aggregation_level")
    qtr = pick("qtr", "quarter")

    missing = [name for name, col in {"area_fips": area, "industry_code": ind, "year": year_col}.items() if col is None]
    if aemp is None and any(m is None for m in months):
        missing.append("annual_avg_emplvl or month1..3_emplvl")
    if missing:
        raise ValueError(f"QCEW file missing required columns (or synonyms): {missing}")

    rename_map = {area: "area_fips", ind: "industry_code", year_col: "year"}
    if aemp:
        rename_map[aemp] = "annual_avg_emplvl"
    for src, dst in zip(months, MONTH_COLUMNS):
        if src:
            rename_map[src] = dst
    if own:
        rename_map[own] = "own_code"
    if agglvl:
        rename_map[agglvl] = "agglvl_code"
    if qtr:
        rename_map[qtr] = "qtr"
    return frame.rename(columns=rename_map)


def _is_naics_detail(df: pd.DataFrame) -> pd.Series:
    if "agglvl_code" in df.columns:
        return df["agglvl_code"].astype(str).str.strip().str[-1:].isin(NAICS_DETAIL_AGG_SUFFIXES)
    return ~df["industry_code"].isin(QCEW_AGGREGATE_CODES)


def prepare_area_employment(
    df: pd.DataFrame,
    year: int,
    area: Optional[str] = None,
    ownership_codes: Iterable[str] = DEFAULT_OWNERSHIP_CODES,
) -> pd.DataFrame:
    """Filter a normalized QCEW slice down to NAICS-detail employment records."""
    working = df.copy()
    working = working[working["year"].astype(str).str.strip() == str(year)]

    working["area_fips"] = working["area_fips"].astype(str).str.strip().str.upper()
    if area is not None:
        working = working[working["area_fips"] == str(area).strip().upper()]

    owns = {str(o).strip() for o in ownership_codes}
    if "own_code" in working.columns:
        working["own_code"] = working["own_code"].astype(str).str.strip()
        working = working[working["own_code"].isin(owns)]
    else:
        # No ownership split in the source: treat rows as the combined total.
        working["own_code"] = "0"

    working["industry_code"] = working["industry_code"].astype(str).str.strip()
    working = working[_is_naics_detail(working)]
    digits_only = working["industry_code"].str.fullmatch(r"\d+")
    dropped = int((~digits_only).sum())
    if dropped:
        log(f"Dropped {dropped:,} rows with non-digit industry codes (sector ranges).")
    working = working[digits_only]

    annual = pd.DataFrame()
    if "annual_avg_emplvl" in working.columns:
        annual = working
        if "qtr" in working.columns:
            annual = working[working["qtr"].astype(str).str.strip().str.upper() == "A"]
    if not annual.empty or all(m not in working.columns for m in MONTH_COLUMNS):
        out = annual.assign(period="A", employment=annual.get("annual_avg_emplvl"))
    else:
        id_cols = ["industry_code", "own_code"] + (["qtr"] if "qtr" in working.columns else [])
        long = working.melt(
            id_vars=id_cols,
            value_vars=MONTH_COLUMNS,
            var_name="month",
            value_name="employment",
        )
        qtr_label = long["qtr"].astype(str).str.strip() if "qtr" in long.columns else "Q"
        long["period"] = qtr_label + "-" + long["month"].str.extract(r"(month\d)", expand=False)
        out = long

    if out.empty:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    out = out.copy()
    out["employment"] = pd.to_numeric(out["employment"], errors="coerce")
    return out[RECORD_COLUMNS].reset_index(drop=True)


def records_at_level(records: pd.DataFrame, level: int) -> pd.DataFrame:
    """Records whose industry code sits exactly at hierarchy `level`."""
    return records[level_mask(records["industry_code"], level)].copy()


def load_area_records(
    raw_path: Path,
    year: int,
    area: Optional[str] = None,
    ownership_codes: Iterable[str] = DEFAULT_OWNERSHIP_CODES,
) -> pd.DataFrame:
    if not raw_path.exists():
        raise FileNotFoundError(f"QCEW raw file not found: {raw_path}")
    raw = pd.read_csv(raw_path, dtype=str, low_memory=False)
    normalized = normalize_qcew_columns(raw)
    return prepare_area_employment(normalized, year=year, area=area, ownership_codes=ownership_codes)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prepare QCEW NAICS-detail employment records.")
    parser.add_argument("--qcew_raw", required=True, help="Path to a raw QCEW area CSV.")
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--area", default=None, help="Optional area_fips filter (e.g. 06079, US000).")
    parser.add_argument("--ownership_codes", nargs="+", default=list(DEFAULT_OWNERSHIP_CODES))
    parser.add_argument("--out", required=True, help="Destination CSV path.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    records = load_area_records(Path(args.qcew_raw), args.year, args.area, args.ownership_codes)
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    records.to_csv(out_path, index=False)
    log(f"Wrote {out_path} ({len(records):,} rows).")


if __name__ == "__main__":
    main()
