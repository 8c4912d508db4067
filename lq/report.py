from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import pandas as pd

from lq.utils import round_to_multiple

REPORT_COLUMNS = ["rank", "title", "industry_code", "workforce"]
LEVEL_LABELS = {
    2: "Sectors (2-digit NAICS)",
    3: "Sub-sectors (3-digit NAICS)",
    4: "Industry groups (4-digit NAICS)",
    5: "NAICS industries (5-digit)",
    6: "National industries (6-digit NAICS)",
}


def format_ranked_table(
    ranked: pd.DataFrame,
    titles: Optional[Mapping[str, str]] = None,
    metrics: Sequence[str] = ("lq", "flq"),
) -> pd.DataFrame:
    """Display-ready table: titles joined, workforce to nearest 10, quotients to 2 dp."""
    lookup = dict(titles or {})
    out = pd.DataFrame(
        {
            "rank": ranked["rank"].astype(int) if "rank" in ranked.columns else range(1, len(ranked) + 1),
            "title": ranked["industry_code"].map(lambda c: lookup.get(str(c), "")).fillna(""),
            "industry_code": ranked["industry_code"].astype(str),
            "workforce": round_to_multiple(ranked["employment_local"], 10),
        },
        index=ranked.index,
    )
    for metric in metrics:
        if metric in ranked.columns:
            out[metric] = pd.to_numeric(ranked[metric], errors="coerce").astype("Float64").round(2)
    return out.reset_index(drop=True)


def _fmt_cell(value: Any) -> str:
    if value is None or value is pd.NA:
        return ""
    if isinstance(value, float):
        return "" if pd.isna(value) else f"{value:,.2f}"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)


def markdown_table(df: pd.DataFrame) -> list[str]:
    """Render a DataFrame as Markdown pipe-table lines."""
    header = "| " + " | ".join(df.columns) + " |"
    rule = "| " + " | ".join("---" for _ in df.columns) + " |"
    lines = [header, rule]
    for row in df.itertuples(index=False):
        cells = []
        for value in row:
            if hasattr(value, "item"):
                value = value.item()
            cells.append(_fmt_cell(value).replace("|", "/"))
        lines.append("| " + " | ".join(cells) + " |")
    return lines


def write_outputs(
    tables: Mapping[int, pd.DataFrame],
    outdir: Path,
    year: int,
    params: Optional[Mapping[str, Any]] = None,
) -> tuple[list[Path], Path]:
    """Write one CSV per level and a Markdown summary; return their paths."""
    outdir.mkdir(parents=True, exist_ok=True)
    csv_paths: list[Path] = []
    for level, table in tables.items():
        out_path = outdir / f"lq_naics{level}_{year}.csv"
        table.to_csv(out_path, index=False)
        csv_paths.append(out_path)

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    lines: list[str] = [f"# Industry specialization, {year}", "", f"Generated {timestamp}.", ""]
    if params:
        lines.append("Run parameters:")
        for key, value in params.items():
            lines.append(f"- {key}: {value}")
        lines.append("")
    for level, table in tables.items():
        lines.append(f"## {LEVEL_LABELS.get(level, f'{level}-digit NAICS')}")
        lines.append("")
        if table.empty:
            lines.append("No industries cleared the threshold.")
        else:
            lines.extend(markdown_table(table))
        lines.append("")

    summary_path = outdir / f"lq_summary_{year}.md"
    summary_path.write_text("\n".join(lines))
    return csv_paths, summary_path
