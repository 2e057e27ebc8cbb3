#!/usr/bin/env python3
"""
test_windows.py

Unit tests for the partitioned window aggregates.

Tests:
- Running total: partition reset, peers on tied order keys, partition sums
- Lag delta: first row, zero previous value, half-up rounding, partitions
- Moving average: short windows, full windows, rounding
- Dense rank: ties, gaps after tie groups, partitions
- Empty input, input immutability, repeat-call determinism
"""

import unittest
import sys
from pathlib import Path
import pandas as pd

# Add code directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "code"))

from ledger_views import windows


class TestRunningTotal(unittest.TestCase):
    """Test cases for windows.running_total()."""

    def setUp(self):
        # Deliberately unsorted
        self.df = pd.DataFrame({
            "year": [2024, 2023, 2024, 2023],
            "month_number": [2, 2, 1, 1],
            "amount": [7.0, 20.0, 5.0, 10.0],
        })

    def test_resets_per_partition(self):
        out = windows.running_total(
            self.df, "amount", partition_by="year",
            order_by=["year", "month_number"], out="total",
        )
        self.assertEqual(out["year"].tolist(), [2023, 2023, 2024, 2024])
        self.assertEqual(out["total"].tolist(), [10.0, 30.0, 5.0, 12.0])

    def test_last_row_equals_partition_sum(self):
        out = windows.running_total(self.df, "amount", partition_by="year", order_by="month_number", out="total")
        last = out.groupby("year")["total"].last()
        sums = self.df.groupby("year")["amount"].sum()
        pd.testing.assert_series_equal(last, sums, check_names=False)

    def test_unpartitioned(self):
        out = windows.running_total(self.df, "amount", order_by=["year", "month_number"], out="total")
        self.assertEqual(out["total"].tolist(), [10.0, 30.0, 35.0, 42.0])

    def test_tied_order_keys_share_total(self):
        df = pd.DataFrame({
            "day": [1, 1, 2],
            "amount": [10.0, 5.0, 1.0],
        })
        out = windows.running_total(df, "amount", order_by="day", out="total")
        self.assertEqual(out["total"].tolist(), [15.0, 15.0, 16.0])

    def test_signed_values(self):
        df = pd.DataFrame({"period": ["2023-01", "2023-02"], "net": [100.0, -40.0]})
        out = windows.running_total(df, "net", order_by="period", out="balance")
        self.assertEqual(out["balance"].tolist(), [100.0, 60.0])

    def test_empty_input(self):
        df = pd.DataFrame({"year": [], "amount": []})
        out = windows.running_total(df, "amount", partition_by="year", order_by="year", out="total")
        self.assertTrue(out.empty)
        self.assertIn("total", out.columns)

    def test_input_not_modified(self):
        before = self.df.copy()
        windows.running_total(self.df, "amount", partition_by="year", order_by="month_number")
        pd.testing.assert_frame_equal(self.df, before)


class TestLagDelta(unittest.TestCase):
    """Test cases for windows.lag_delta()."""

    def test_first_row_and_zero_previous_are_absent(self):
        df = pd.DataFrame({
            "month_number": [1, 2, 3, 4, 5],
            "spend": [100.0, 150.0, 0.0, 30.0, 60.0],
        })
        out = windows.lag_delta(df, "spend", order_by="month_number", out="change")
        change = out["change"]

        self.assertTrue(pd.isna(change.iloc[0]))
        self.assertAlmostEqual(change.iloc[1], 0.5)
        self.assertAlmostEqual(change.iloc[2], -1.0)
        self.assertTrue(pd.isna(change.iloc[3]))  # previous value is 0
        self.assertAlmostEqual(change.iloc[4], 1.0)

    def test_rounded_to_two_places(self):
        df = pd.DataFrame({"m": [1, 2], "spend": [300.0, 401.0]})
        out = windows.lag_delta(df, "spend", order_by="m", out="change")
        self.assertAlmostEqual(out["change"].iloc[1], 0.34)

    def test_half_cent_rounds_away_from_zero(self):
        df = pd.DataFrame({"m": [1, 2, 3], "spend": [80.0, 90.0, 78.75]})
        out = windows.lag_delta(df, "spend", order_by="m", out="change")
        self.assertEqual(out["change"].iloc[1], 0.13)   # 0.125
        self.assertEqual(out["change"].iloc[2], -0.13)  # -0.125

    def test_partitioned(self):
        df = pd.DataFrame({
            "account": ["b", "a", "a", "b"],
            "m": [1, 1, 2, 2],
            "v": [10.0, 4.0, 2.0, 15.0],
        })
        out = windows.lag_delta(df, "v", partition_by="account", order_by="m", out="change")

        self.assertEqual(out["account"].tolist(), ["a", "a", "b", "b"])
        self.assertTrue(pd.isna(out["change"].iloc[0]))
        self.assertAlmostEqual(out["change"].iloc[1], -0.5)
        self.assertTrue(pd.isna(out["change"].iloc[2]))
        self.assertAlmostEqual(out["change"].iloc[3], 0.5)

    def test_empty_input(self):
        out = windows.lag_delta(pd.DataFrame({"m": [], "v": []}), "v", order_by="m", out="change")
        self.assertTrue(out.empty)
        self.assertIn("change", out.columns)


class TestMovingAverage(unittest.TestCase):
    """Test cases for windows.moving_average()."""

    def test_short_then_full_windows(self):
        df = pd.DataFrame({"day": range(10), "v": [float(i) for i in range(1, 11)]})
        out = windows.moving_average(df, "v", window=7, order_by="day", out="avg")
        avg = out["avg"].tolist()

        self.assertEqual(avg[0], 1.0)
        self.assertEqual(avg[1], 1.5)
        self.assertEqual(avg[5], 3.5)
        self.assertEqual(avg[6], 4.0)   # mean of 1..7
        self.assertEqual(avg[9], 7.0)   # mean of 4..10

    def test_matches_trailing_mean(self):
        values = [50.0, 30.0, 0.0, 0.0, 12.0, 7.0, 3.0, 9.0, 0.0]
        df = pd.DataFrame({"day": range(len(values)), "v": values})
        out = windows.moving_average(df, "v", window=7, order_by="day", out="avg")

        for i, got in enumerate(out["avg"]):
            window = values[max(0, i - 6): i + 1]
            self.assertAlmostEqual(got, round(sum(window) / len(window), 2))

    def test_rounded_to_two_places(self):
        df = pd.DataFrame({"day": [1, 2, 3], "v": [1.0, 1.0, 2.0]})
        out = windows.moving_average(df, "v", window=7, order_by="day", out="avg")
        self.assertEqual(out["avg"].iloc[2], 1.33)

    def test_half_cent_rounds_away_from_zero(self):
        df = pd.DataFrame({"day": [1, 2], "v": [0.25, 0.0]})
        out = windows.moving_average(df, "v", window=7, order_by="day", out="avg")
        self.assertEqual(out["avg"].tolist(), [0.25, 0.13])

    def test_invalid_window(self):
        df = pd.DataFrame({"day": [1], "v": [1.0]})
        with self.assertRaises(ValueError):
            windows.moving_average(df, "v", window=0, order_by="day")

    def test_empty_input(self):
        out = windows.moving_average(pd.DataFrame({"day": [], "v": []}), "v", order_by="day", out="avg")
        self.assertTrue(out.empty)
        self.assertIn("avg", out.columns)


class TestDenseRank(unittest.TestCase):
    """Test cases for windows.dense_rank()."""

    def test_ties_share_rank_and_skip(self):
        df = pd.DataFrame({"category": ["a", "b", "c", "d"], "spend": [50.0, 80.0, 50.0, 20.0]})
        out = windows.dense_rank(df, "spend", out="rank")
        ranks = dict(zip(out["category"], out["rank"]))

        self.assertEqual(ranks, {"b": 1, "a": 2, "c": 2, "d": 4})

    def test_next_rank_skips_tie_group(self):
        df = pd.DataFrame({"v": [10.0, 10.0, 5.0]})
        out = windows.dense_rank(df, "v", out="rank")
        self.assertEqual(out["rank"].tolist(), [1, 1, 3])

    def test_greater_value_has_smaller_rank(self):
        df = pd.DataFrame({"v": [3.0, 9.0, 9.0, 1.0, 3.0, 7.0]})
        out = windows.dense_rank(df, "v", out="rank")
        for _, left in out.iterrows():
            for _, right in out.iterrows():
                if left["v"] > right["v"]:
                    self.assertLess(left["rank"], right["rank"])
                elif left["v"] == right["v"]:
                    self.assertEqual(left["rank"], right["rank"])

    def test_partitioned(self):
        df = pd.DataFrame({
            "month": [1, 1, 2, 2, 2],
            "v": [10.0, 20.0, 5.0, 5.0, 1.0],
        })
        out = windows.dense_rank(df, "v", partition_by="month", out="rank")
        self.assertEqual(out["month"].tolist(), [1, 1, 2, 2, 2])
        self.assertEqual(out["rank"].tolist(), [1, 2, 1, 1, 3])

    def test_empty_input(self):
        out = windows.dense_rank(pd.DataFrame({"v": []}), "v", out="rank")
        self.assertTrue(out.empty)
        self.assertIn("rank", out.columns)


class TestDeterminism(unittest.TestCase):
    """Repeated calls on the same input give identical output."""

    def test_repeat_calls(self):
        df = pd.DataFrame({
            "year": [2023, 2023, 2024],
            "m": [1, 2, 1],
            "v": [10.0, 0.0, 4.0],
        })
        for op in (
            lambda: windows.running_total(df, "v", partition_by="year", order_by="m"),
            lambda: windows.lag_delta(df, "v", order_by=["year", "m"]),
            lambda: windows.moving_average(df, "v", window=2, order_by=["year", "m"]),
            lambda: windows.dense_rank(df, "v", partition_by="year"),
        ):
            pd.testing.assert_frame_equal(op(), op())


if __name__ == "__main__":
    unittest.main(verbosity=2)
