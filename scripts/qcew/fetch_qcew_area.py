#!/usr/bin/env python3
"""
fetch_qcew_area.py
------------------
Download BLS QCEW open-data area slices (all industries, all ownerships) and
cache them locally so repeated LQ runs never hit the network twice.

Endpoint
  https://data.bls.gov/cew/data/api/{year}/{qtr}/area/{area}.csv
  qtr is "a" for annual averages or 1-4 for a single quarter.

Areas used by the SLO County study
  06079  San Luis Obispo County, CA (local)
  06000  California statewide (intermediate)
  US000  U.S. total (reference)

Usage:
  python scripts/qcew/fetch_qcew_area.py --year 2023 --areas 06079 06000 US000
"""

from __future__ import annotations

import argparse
import random
import time
from pathlib import Path
from typing import Optional

import requests

QCEW_AREA_URL = "https://data.bls.gov/cew/data/api/{year}/{qtr}/area/{area}.csv"
DEFAULT_CACHE_DIR = "data_raw/qcew/areas"
DEFAULT_AREAS = ["06079", "06000", "US000"]
CACHE_NAME = "{year}.{qtr}.area.{area}.csv"


def log(msg: str) -> None:
    print(f"[QCEW] {msg}")


def area_url(year: int, area: str, qtr: str = "a") -> str:
    return QCEW_AREA_URL.format(year=year, qtr=str(qtr).lower(), area=str(area).upper())


def cache_path(cache_dir: Path, year: int, area: str, qtr: str = "a") -> Path:
    return Path(cache_dir) / CACHE_NAME.format(year=year, qtr=str(qtr).lower(), area=str(area).upper())


def fetch_area_csv(
    year: int,
    area: str,
    cache_dir: Path,
    qtr: str = "a",
    session: Optional[requests.Session] = None,
    max_retries: int = 3,
    timeout: int = 60,
    backoff: float = 1.0,
) -> Path:
    """Return the cached CSV path for an area slice, downloading it if needed.

    Server errors (5xx) and network failures are retried with exponential
    backoff; client errors (4xx) surface immediately as requests.HTTPError.
    """
    target = cache_path(cache_dir, year, area, qtr)
    if target.exists():
        log(f"Using cached {target}")
        return target

    url = area_url(year, area, qtr)
    http = session or requests.Session()
    last_error: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            log(f"Fetching {url} (attempt {attempt}/{max_retries}) …")
            resp = http.get(url, timeout=timeout)
            if resp.status_code >= 500:
                raise requests.HTTPError(f"Server error {resp.status_code}", response=resp)
            resp.raise_for_status()
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(resp.content)
            log(f"Wrote {target} ({len(resp.content):,} bytes).")
            return target
        except requests.HTTPError as exc:
            if exc.response is not None and exc.response.status_code < 500:
                raise
            last_error = exc
        except requests.RequestException as exc:
            last_error = exc
        if attempt < max_retries:
            sleep_time = backoff * (2 ** (attempt - 1)) + random.uniform(0.1, 0.5)
            log(f"{last_error}; retrying in {sleep_time:.1f}s")
            time.sleep(sleep_time)

    raise RuntimeError(f"QCEW download failed after {max_retries} attempts: {url} ({last_error})")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Download QCEW open-data area slices.")
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--areas", nargs="+", default=DEFAULT_AREAS)
    parser.add_argument("--qtr", default="a", help="'a' for annual averages or 1-4 (default: %(default)s)")
    parser.add_argument("--cache_dir", default=DEFAULT_CACHE_DIR)
    parser.add_argument("--max_retries", type=int, default=3)
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    with requests.Session() as session:
        for area in args.areas:
            fetch_area_csv(
                args.year,
                area,
                Path(args.cache_dir),
                qtr=args.qtr,
                session=session,
                max_retries=args.max_retries,
            )


if __name__ == "__main__":
    main()
