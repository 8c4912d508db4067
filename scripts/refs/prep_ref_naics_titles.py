#!/usr/bin/env python3
"""
Prepare the NAICS code → title lookup used to label LQ tables.

Accepts either source:
  - Census "2-6 digit_2022_Codes.xlsx" (or a CSV export of it). The header
    row ("Seq. No.", "2022 NAICS US Code", "2022 NAICS US Title") can sit
    below a few blank/notes rows; it is located by content. Titles ending in
    the Census "T" footnote marker are cleaned.
  - BLS QCEW industry_titles.csv (industry_code, industry_title), where
    titles carry a leading "NAICS 722 " that is stripped.

Titles are display-only; codes missing from the lookup render blank.
"""

from __future__ import annotations

import argparse
import re
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd
import requests

BLS_TITLES_URL = "https://data.bls.gov/cew/doc/titles/industry/industry_titles.csv"
RAW_DEFAULT = Path("data_raw/naics/2-6 digit_2022_Codes.xlsx")
OUT_DEFAULT = Path("data_clean/reference/ref_naics_titles.csv")
HEADER_SCAN_ROWS = 25

_CENSUS_FOOTNOTE = re.compile(r"(?<=[a-z)])T\s*$")
_BLS_PREFIX = re.compile(r"^\s*NAICS\s*\d+(?:-\d+)?\s+")


def log(msg: str) -> None:
    print(f"[NAICS] {msg}")


def find_header_row(raw: pd.DataFrame, markers: Sequence[str] = ("code", "title")) -> int:
    """Index of the first row whose cells mention every marker (case-insensitive)."""
    for idx in range(min(len(raw), HEADER_SCAN_ROWS)):
        cells = [str(v).strip().lower() for v in raw.iloc[idx].tolist() if pd.notna(v)]
        if all(any(marker in cell for cell in cells) for marker in markers):
            return idx
    raise ValueError(f"Could not find a header row containing {list(markers)} in the first {HEADER_SCAN_ROWS} rows.")


def _read_headerless(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in {".xlsx", ".xls"}:
        return pd.read_excel(path, header=None, dtype=str)
    return pd.read_csv(path, header=None, dtype=str, keep_default_na=False, na_values=[""])


def _pick(columns: Sequence[str], *needles: str) -> Optional[str]:
    for col in columns:
        text = str(col).strip().lower()
        if all(n in text for n in needles):
            return col
    return None


def clean_title(title: str) -> str:
    text = _BLS_PREFIX.sub("", str(title))
    text = _CENSUS_FOOTNOTE.sub("", text)
    return " ".join(text.split())


def tidy_titles(raw: pd.DataFrame) -> pd.DataFrame:
    """Locate the header, pick code/title columns, and clean both."""
    header_idx = find_header_row(raw)
    header = [str(v).strip() if pd.notna(v) else f"unnamed_{i}" for i, v in enumerate(raw.iloc[header_idx])]
    body = raw.iloc[header_idx + 1 :].copy()
    body.columns = header

    code_col = _pick(header, "code")
    title_col = _pick(header, "title")
    if code_col is None or title_col is None:
        raise ValueError(f"NAICS taxonomy missing code/title columns: {header}")

    df = body[[code_col, title_col]].rename(columns={code_col: "industry_code", title_col: "industry_title"})
    df = df.dropna(subset=["industry_code", "industry_title"])
    df["industry_code"] = df["industry_code"].astype(str).str.strip().str.replace(r"\.0$", "", regex=True)
    df["industry_title"] = df["industry_title"].map(clean_title)
    df = df[(df["industry_code"] != "") & (df["industry_title"] != "")]
    df = df.drop_duplicates(subset=["industry_code"], keep="first")
    return df.sort_values("industry_code").reset_index(drop=True)


def load_naics_titles(path: Path) -> dict[str, str]:
    """Read a taxonomy file into an industry_code → title lookup."""
    if not path.exists():
        raise FileNotFoundError(f"NAICS taxonomy not found: {path}")
    df = tidy_titles(_read_headerless(path))
    log(f"Loaded {len(df):,} NAICS titles from {path}")
    return df.set_index("industry_code")["industry_title"].to_dict()


def fetch_bls_titles(out_path: Path, timeout: int = 60) -> Path:
    """Download the BLS QCEW industry titles CSV if it is not cached yet."""
    if out_path.exists():
        log(f"Already fetched {out_path}")
        return out_path
    resp = requests.get(BLS_TITLES_URL, timeout=timeout)
    resp.raise_for_status()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(resp.content)
    log(f"Wrote {out_path}")
    return out_path


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prepare NAICS code → title reference CSV.")
    parser.add_argument("--in_path", default=str(RAW_DEFAULT), help="Census .xlsx/.csv or BLS industry_titles.csv.")
    parser.add_argument("--out_csv", default=str(OUT_DEFAULT), help="Destination CSV path.")
    parser.add_argument("--fetch_bls", action="store_true", help="Download BLS industry_titles.csv to --in_path first.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    in_path = Path(args.in_path)
    if args.fetch_bls:
        fetch_bls_titles(in_path)
    titles = load_naics_titles(in_path)
    out_path = Path(args.out_csv)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(
        {"industry_code": list(titles.keys()), "industry_title": list(titles.values())}
    ).to_csv(out_path, index=False)
    log(f"Wrote {out_path} ({len(titles)} rows).")


if __name__ == "__main__":
    main()
