"""Unit tests for the date helpers."""

import datetime

import pytest

from ecfr_mcp.dates import FAR_FUTURE
from ecfr_mcp.dates import FAR_PAST
from ecfr_mcp.dates import parse_date
from ecfr_mcp.dates import ranges_overlap
from ecfr_mcp.dates import shift_days
from ecfr_mcp.dates import today_iso
from ecfr_mcp.dates import within_range


class TestParseDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-06-15", datetime.date(2024, 6, 15)),
            ("  2024-06-15  ", datetime.date(2024, 6, 15)),
            ("2024-06-15T12:30:00Z", datetime.date(2024, 6, 15)),
            ("2024-06-15T23:59:59+05:00", datetime.date(2024, 6, 15)),
            (datetime.date(2024, 6, 15), datetime.date(2024, 6, 15)),
            (datetime.datetime(2024, 6, 15, 8, 0), datetime.date(2024, 6, 15)),
        ],
    )
    def test_parses_supported_forms(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "bad-date", "2024-13-01", 20240615, ["2024-06-15"]])
    def test_unparseable_values_return_none(self, value):
        assert parse_date(value) is None


class TestWithinRange:
    """Closed-interval membership with open bounds."""

    def test_inside_both_bounds(self):
        assert within_range("2024-06-15", "2024-01-01", "2024-12-31") is True

    def test_before_start_with_open_end(self):
        assert within_range("2023-12-31", "2024-01-01", None) is False

    def test_bounds_are_inclusive(self):
        assert within_range("2024-01-01", "2024-01-01", "2024-12-31") is True
        assert within_range("2024-12-31", "2024-01-01", "2024-12-31") is True

    def test_after_end(self):
        assert within_range("2025-01-01", None, "2024-12-31") is False

    def test_no_bounds_accepts_any_valid_date(self):
        assert within_range("1900-01-01") is True

    def test_unparseable_target_is_never_in_range(self):
        assert within_range("bad-date", "2024-01-01", "2024-12-31") is False
        assert within_range("bad-date") is False

    def test_unparseable_bound_is_treated_as_open(self):
        assert within_range("2024-06-15", "not-a-date", "2024-12-31") is True


class TestRangesOverlap:
    def test_item_with_open_start_overlaps(self):
        assert ranges_overlap("2024-01-01", "2024-06-01", None, "2024-02-01") is True

    def test_item_starting_after_filter_end(self):
        assert ranges_overlap("2024-01-01", "2024-02-01", "2024-03-01", None) is False

    def test_item_ending_before_filter_start(self):
        assert ranges_overlap("2024-01-01", "2024-02-01", None, "2023-12-31") is False

    def test_touching_endpoints_overlap(self):
        assert ranges_overlap("2024-01-01", "2024-02-01", "2024-02-01", "2024-03-01") is True

    def test_item_without_bounds_always_overlaps(self):
        assert ranges_overlap("2024-01-01", "2024-02-01") is True

    def test_open_filter_accepts_everything(self):
        assert ranges_overlap(None, None, "1990-01-01", "1991-01-01") is True

    def test_sentinels_span_every_date(self):
        assert FAR_PAST < datetime.date(1, 1, 2)
        assert FAR_FUTURE > datetime.date(9999, 12, 30)


class TestShiftDays:
    def test_subtracts_days(self):
        assert shift_days("2025-01-01", 180) == datetime.date(2024, 7, 5)

    def test_unparseable_value(self):
        assert shift_days("soon", 10) is None

    def test_overflow_returns_none(self):
        assert shift_days("0001-01-02", 10) is None


def test_today_iso_is_a_date_string():
    assert parse_date(today_iso()) is not None
