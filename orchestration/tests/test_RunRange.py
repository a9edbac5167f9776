"""
Unit tests for orchestration.RunRange.
"""

import unittest
from datetime import date

from orchestration.RunRange import RunRange, parse_bound, resolve_index_range, resolve_run_range
from utils.Errors import InvalidDateInputError, InvalidIndexRangeError

TODAY = date(2025, 6, 15)


class TestRunRange(unittest.TestCase):
    """Test date bound resolution."""

    def test_order_independent(self) -> None:
        a = resolve_run_range("2024-01-01", "2023-06-01", TODAY)
        b = resolve_run_range("2023-06-01", "2024-01-01", TODAY)
        self.assertEqual(a, b)
        self.assertEqual(a.lower, date(2023, 6, 1))
        self.assertEqual(a.upper, date(2024, 1, 1))

    def test_sentinels(self) -> None:
        for text in ("", "  ", "Start", "anfang", "END", "Ende", None):
            self.assertIsNone(parse_bound(text, "start", TODAY), text)
        self.assertEqual(parse_bound("Heute", "end", TODAY), TODAY)
        self.assertEqual(parse_bound("today", "end", TODAY), TODAY)

    def test_missing_year_uses_current_year(self) -> None:
        self.assertEqual(parse_bound("15.03.", "start", TODAY), date(2025, 3, 15))

    def test_other_date_forms(self) -> None:
        self.assertEqual(parse_bound("15/03/2024", "start", TODAY), date(2024, 3, 15))
        self.assertEqual(parse_bound("1. März 2024", "start", TODAY), date(2024, 3, 1))

    def test_invalid_names_field_and_value(self) -> None:
        with self.assertRaises(InvalidDateInputError) as cm:
            resolve_run_range("01.01.2024", "gestern", TODAY)
        self.assertEqual(cm.exception.label, "end")
        self.assertEqual(cm.exception.value, "gestern")

    def test_year_zero_is_invalid(self) -> None:
        with self.assertRaises(InvalidDateInputError) as cm:
            resolve_run_range("0000-05-01", "", TODAY)
        self.assertEqual(cm.exception.label, "start")

    def test_one_sided_ranges(self) -> None:
        lower_only = resolve_run_range("01.02.2024", "ende", TODAY)
        self.assertEqual(lower_only, RunRange(lower=date(2024, 2, 1), upper=None))
        self.assertTrue(lower_only.contains(date(2030, 1, 1)))
        self.assertFalse(lower_only.contains(date(2024, 1, 31)))
        upper_only = resolve_run_range("", "01.02.2024", TODAY)
        self.assertTrue(upper_only.contains(date(2000, 1, 1)))
        self.assertFalse(upper_only.contains(date(2024, 2, 2)))

    def test_bounds_inclusive(self) -> None:
        rng = resolve_run_range("2024-01-02", "2024-01-04", TODAY)
        self.assertTrue(rng.contains(date(2024, 1, 2)))
        self.assertTrue(rng.contains(date(2024, 1, 4)))
        self.assertFalse(rng.contains(date(2024, 1, 5)))


class TestIndexRange(unittest.TestCase):
    """Test index bound resolution."""

    def test_defaults_cover_everything(self) -> None:
        rng = resolve_index_range("", "", 10)
        self.assertEqual((rng.start, rng.end), (0, 9))
        self.assertEqual(list(rng), list(range(10)))

    def test_clamping(self) -> None:
        rng = resolve_index_range("-3", "50", 10)
        self.assertEqual((rng.start, rng.end), (0, 9))
        rng = resolve_index_range("2", "-1", 10)
        self.assertEqual((rng.start, rng.end), (2, 9))

    def test_start_after_end(self) -> None:
        with self.assertRaises(InvalidIndexRangeError):
            resolve_index_range("7", "3", 10)
        with self.assertRaises(InvalidIndexRangeError):
            resolve_index_range("12", "", 10)

    def test_non_numeric(self) -> None:
        with self.assertRaises(InvalidDateInputError):
            resolve_index_range("abc", "", 10)


if __name__ == "__main__":
    unittest.main()
