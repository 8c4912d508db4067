import tempfile
import unittest
from pathlib import Path

import pandas as pd

from lq.report import format_ranked_table, markdown_table, write_outputs
from lq.utils import round_to_multiple


class TestFormatRankedTable(unittest.TestCase):
    def setUp(self) -> None:
        self.ranked = pd.DataFrame(
            {
                "rank": [1, 2, 3],
                "industry_code": ["312", "721", "999"],
                "employment_local": [1234.0, 1235.0, 4.0],
                "employment_reference": [1.0, 1.0, 1.0],
                "lq": pd.array([2.34567, 1.005, None], dtype="Float64"),
                "flq": pd.array([1.38912, 0.6, None], dtype="Float64"),
            }
        )
        self.titles = {"312": "Beverage and Tobacco Product Manufacturing", "721": "Accommodation"}

    def test_columns_and_rounding(self) -> None:
        out = format_ranked_table(self.ranked, self.titles)
        self.assertEqual(out.columns.tolist(), ["rank", "title", "industry_code", "workforce", "lq", "flq"])
        self.assertEqual(out["workforce"].tolist(), [1230, 1240, 0])
        self.assertAlmostEqual(out.loc[0, "lq"], 2.35)
        self.assertAlmostEqual(out.loc[0, "flq"], 1.39)
        self.assertTrue(pd.isna(out.loc[2, "lq"]))

    def test_missing_title_is_blank(self) -> None:
        out = format_ranked_table(self.ranked, self.titles)
        self.assertEqual(out.loc[2, "title"], "")
        out = format_ranked_table(self.ranked, None, metrics=["lq"])
        self.assertEqual(out["title"].tolist(), ["", "", ""])
        self.assertNotIn("flq", out.columns)

    def test_round_to_multiple_half_up(self) -> None:
        values = pd.Series([5.0, 14.9, 15.0, None])
        rounded = round_to_multiple(values, 10)
        self.assertEqual(rounded.iloc[:3].tolist(), [10, 10, 20])
        self.assertTrue(pd.isna(rounded.iloc[3]))


class TestWriteOutputs(unittest.TestCase):
    def test_writes_csv_and_summary(self) -> None:
        table = pd.DataFrame(
            {
                "rank": [1],
                "title": ["Wineries | Breweries"],
                "industry_code": ["3121"],
                "workforce": pd.array([2450], dtype="Int64"),
                "lq": pd.array([4.12], dtype="Float64"),
            }
        )
        empty = table.iloc[0:0]
        with tempfile.TemporaryDirectory() as tmp:
            csv_paths, summary_path = write_outputs({3: empty, 4: table}, Path(tmp), 2023, {"percentile": 0.95})
            self.assertEqual([p.name for p in csv_paths], ["lq_naics3_2023.csv", "lq_naics4_2023.csv"])
            written = pd.read_csv(csv_paths[1], dtype={"industry_code": str})
            self.assertEqual(written.loc[0, "industry_code"], "3121")
            summary = summary_path.read_text()
        self.assertIn("## Sub-sectors (3-digit NAICS)", summary)
        self.assertIn("No industries cleared the threshold.", summary)
        self.assertIn("- percentile: 0.95", summary)
        self.assertIn("| 1 | Wineries / Breweries | 3121 | 2,450 | 4.12 |", summary)

    def test_markdown_table_blank_for_missing(self) -> None:
        df = pd.DataFrame({"code": ["11"], "lq": pd.array([None], dtype="Float64")})
        lines = markdown_table(df)
        self.assertEqual(lines[0], "| code | lq |")
        self.assertEqual(lines[2], "| 11 |  |")


if __name__ == "__main__":
    unittest.main()
