import math
import unittest

import pandas as pd

from lq.quotients import compute_location_quotients, flegg_factor, validate_lambda


def _table(values: dict) -> pd.Series:
    series = pd.Series(values, dtype="float64", name="employment")
    series.index.name = "industry_code"
    return series


class TestLocationQuotients(unittest.TestCase):
    def test_two_industry_example(self) -> None:
        local = _table({"A": 10, "B": 90})
        reference = _table({"A": 30, "B": 70})
        out = compute_location_quotients(local, reference).set_index("industry_code")
        self.assertAlmostEqual(out.loc["A", "share_local"], 0.1)
        self.assertAlmostEqual(out.loc["A", "share_reference"], 0.3)
        self.assertAlmostEqual(out.loc["A", "lq"], 1 / 3, places=3)
        self.assertAlmostEqual(out.loc["B", "lq"], 0.9 / 0.7, places=3)
        self.assertGreater(out.loc["B", "lq"], 1)
        self.assertLess(out.loc["A", "lq"], 1)
        self.assertNotIn("flq", out.columns)

    def test_lq_above_one_iff_local_share_larger(self) -> None:
        local = _table({"311": 5, "312": 40, "321": 20, "722": 35})
        reference = _table({"311": 25, "312": 10, "321": 20, "722": 45})
        out = compute_location_quotients(local, reference)
        for _, row in out.iterrows():
            self.assertEqual(row["lq"] > 1, row["share_local"] > row["share_reference"])
        self.assertAlmostEqual(out.set_index("industry_code").loc["321", "lq"], 1.0)

    def test_totals_taken_before_join(self) -> None:
        local = _table({"A": 10, "B": 90, "LOCAL_ONLY": 100})
        reference = _table({"A": 30, "B": 70, "REF_ONLY": 100})
        out = compute_location_quotients(local, reference).set_index("industry_code")
        self.assertEqual(sorted(out.index), ["A", "B"])
        self.assertAlmostEqual(out.loc["A", "share_local"], 10 / 200)
        self.assertAlmostEqual(out.loc["A", "share_reference"], 30 / 200)

    def test_zero_reference_total_is_undefined_not_fatal(self) -> None:
        local = _table({"A": 10, "B": 90})
        reference = _table({"A": 0, "B": 0})
        out = compute_location_quotients(local, reference)
        self.assertEqual(len(out), 2)
        self.assertTrue(out["share_reference"].isna().all())
        self.assertTrue(out["lq"].isna().all())
        self.assertEqual(str(out["lq"].dtype), "Float64")

    def test_zero_reference_share_for_one_code(self) -> None:
        local = _table({"A": 10, "B": 90})
        reference = _table({"A": 0, "B": 70})
        out = compute_location_quotients(local, reference).set_index("industry_code")
        self.assertTrue(pd.isna(out.loc["A", "lq"]))
        self.assertAlmostEqual(out.loc["B", "lq"], 0.9)


class TestFleggQuotients(unittest.TestCase):
    def test_factor_matches_formula(self) -> None:
        factor = flegg_factor(5, 100, 0.2)
        self.assertAlmostEqual(factor, math.log2(1.05) ** 0.2)
        self.assertLess(factor, 1)

    def test_flq_ratio_constant(self) -> None:
        local = _table({"111": 2, "112": 3})
        reference = _table({"111": 40, "112": 60})
        intermediate = _table({"111": 50, "112": 50})
        out = compute_location_quotients(local, reference, intermediate, flegg_lambda=0.2)
        ratios = (out["flq"] / out["lq"]).astype("float64")
        expected = math.log2(1.05) ** 0.2
        for ratio in ratios:
            self.assertAlmostEqual(ratio, expected)

    def test_zero_intermediate_total(self) -> None:
        self.assertIsNone(flegg_factor(5, 0))
        local = _table({"A": 10})
        reference = _table({"A": 30, "B": 70})
        intermediate = _table({"A": 0})
        out = compute_location_quotients(local, reference, intermediate)
        self.assertTrue(out["flq"].isna().all())
        self.assertFalse(out["lq"].isna().any())

    def test_lambda_domain(self) -> None:
        self.assertEqual(validate_lambda(1), 1.0)
        for bad in (0, -0.1, 1.5):
            with self.assertRaises(ValueError):
                validate_lambda(bad)
        with self.assertRaises(ValueError):
            compute_location_quotients(_table({"A": 1}), _table({"A": 1}), _table({"A": 2}), flegg_lambda=0)


if __name__ == "__main__":
    unittest.main()
