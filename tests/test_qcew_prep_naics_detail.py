import tempfile
import unittest
from pathlib import Path

import pandas as pd

from scripts.qcew import qcew_prep_naics_detail as prep


def _annual_row(code: str, agglvl: str, emp: str, own: str = "5", year: str = "2023", area: str = "06079") -> dict:
    return {
        "area_fips": area,
        "own_code": own,
        "industry_code": code,
        "agglvl_code": agglvl,
        "size_code": "0",
        "year": year,
        "qtr": "A",
        "disclosure_code": "" if emp else "N",
        "annual_avg_estabs": "3",
        "annual_avg_emplvl": emp,
    }


class TestQcewPrepNaicsDetail(unittest.TestCase):
    def test_normalize_reports_missing_columns(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            prep.normalize_qcew_columns(pd.DataFrame({"area_fips": ["06079"], "year": ["2023"]}))
        self.assertIn("industry_code", str(ctx.exception))

    def test_normalize_synonyms(self) -> None:
        raw = pd.DataFrame(
            {"Area": ["06079"], "NAICS": ["722"], "Year": ["2023"], "Annual_Avg_Employment": ["10"]}
        )
        out = prep.normalize_qcew_columns(raw)
        self.assertTrue({"area_fips", "industry_code", "year", "annual_avg_emplvl"} <= set(out.columns))

    def test_annual_slice(self) -> None:
        raw = pd.DataFrame(
            [
                _annual_row("10", "70", "5000", own="0"),
                _annual_row("1011", "73", "400"),
                _annual_row("31-33", "74", "300"),
                _annual_row("72", "74", "900"),
                _annual_row("722", "75", "800"),
                _annual_row("722", "75", "50", own="3"),
                _annual_row("722", "75", "9999", own="0"),
                _annual_row("7225", "76", "700"),
                _annual_row("312", "75", ""),
                _annual_row("722", "75", "1", year="2022"),
                _annual_row("722", "75", "1", area="06000"),
            ]
        )
        records = prep.prepare_area_employment(prep.normalize_qcew_columns(raw), 2023, area="06079")
        self.assertEqual(records.columns.tolist(), prep.RECORD_COLUMNS)
        self.assertEqual(sorted(records["industry_code"].unique()), ["312", "72", "722", "7225"])
        self.assertEqual(records.loc[records["industry_code"] == "722", "employment"].sum(), 850)
        self.assertTrue(records.loc[records["industry_code"] == "312", "employment"].isna().all())
        self.assertEqual(set(records["period"]), {"A"})

    def test_quarterly_months_become_records(self) -> None:
        raw = pd.DataFrame(
            {
                "area_fips": ["06079", "06079"],
                "own_code": ["5", "5"],
                "industry_code": ["7211", "7211"],
                "agglvl_code": ["76", "76"],
                "year": ["2023", "2023"],
                "qtr": ["1", "2"],
                "month1_emplvl": ["10", "20"],
                "month2_emplvl": ["11", "21"],
                "month3_emplvl": ["12", "22"],
            }
        )
        records = prep.prepare_area_employment(prep.normalize_qcew_columns(raw), 2023)
        self.assertEqual(len(records), 6)
        self.assertEqual(records["employment"].sum(), 96)
        self.assertIn("1-month1", set(records["period"]))

    def test_without_agglvl_drops_qcew_aggregates(self) -> None:
        raw = pd.DataFrame(
            {
                "area_fips": ["US000"] * 4,
                "industry_code": ["10", "102", "1025", "722"],
                "year": ["2023"] * 4,
                "annual_avg_emplvl": ["100", "60", "20", "7"],
            }
        )
        records = prep.prepare_area_employment(prep.normalize_qcew_columns(raw), 2023, area="us000")
        self.assertEqual(records["industry_code"].tolist(), ["722"])
        self.assertEqual(records["own_code"].tolist(), ["0"])

    def test_records_at_level(self) -> None:
        records = pd.DataFrame({"industry_code": ["72", "722", "7225", "721"], "employment": [1, 2, 3, 4]})
        self.assertEqual(prep.records_at_level(records, 3)["industry_code"].tolist(), ["722", "721"])

    def test_load_area_records_from_file(self) -> None:
        raw = pd.DataFrame([_annual_row("722", "75", "800"), _annual_row("7225", "76", "700")])
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "2023.a.area.06079.csv"
            raw.to_csv(path, index=False)
            records = prep.load_area_records(path, 2023, area="06079")
            self.assertEqual(records["industry_code"].tolist(), ["722", "7225"])
            with self.assertRaises(FileNotFoundError):
                prep.load_area_records(Path(tmp) / "missing.csv", 2023)


if __name__ == "__main__":
    unittest.main()
