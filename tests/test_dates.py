"""Tests for the calendar helpers."""

from datetime import date, datetime

import pytest

from vie_gamifiee.dates import (
    add_days,
    calendar_week_key,
    format_date,
    is_next_day,
    iso_week_key,
    month_day,
    month_key,
)


class TestFormatDate:
    def test_date_object(self):
        assert format_date(date(2024, 3, 5)) == "2024-03-05"

    def test_datetime_keeps_local_date(self):
        assert format_date(datetime(2024, 3, 5, 23, 59)) == "2024-03-05"

    def test_string_round_trips(self):
        assert format_date("2024-12-31") == "2024-12-31"

    def test_invalid_string_raises(self):
        with pytest.raises(ValueError):
            format_date("2024-13-01")

    def test_timestamp_string_truncated(self):
        assert format_date("2024-03-05T23:59:00Z") == "2024-03-05"

    @pytest.mark.parametrize("text", ["2024-01-01garbage", "2024-01-01 ", " 2024-01-01", "2024-1-01"])
    def test_trailing_or_malformed_text_raises(self, text):
        with pytest.raises(ValueError):
            format_date(text)


class TestAddDays:
    def test_month_rollover(self):
        assert add_days("2024-01-31", 1) == "2024-02-01"

    def test_leap_year(self):
        assert add_days("2024-02-28", 1) == "2024-02-29"
        assert add_days("2024-02-28", 2) == "2024-03-01"

    def test_year_rollover(self):
        assert add_days("2023-12-31", 1) == "2024-01-01"

    def test_negative(self):
        assert add_days("2024-01-01", -1) == "2023-12-31"

    def test_is_next_day(self):
        assert is_next_day("2024-01-31", "2024-02-01") is True
        assert is_next_day("2024-01-01", "2024-01-03") is False


class TestIsoWeekKey:
    def test_friday_new_year_belongs_to_previous_iso_year(self):
        assert iso_week_key("2021-01-01") == "2020-W53"

    def test_late_december_belongs_to_next_iso_year(self):
        assert iso_week_key("2024-12-30") == "2025-W01"

    def test_week_one_contains_jan_4(self):
        assert iso_week_key("2021-01-04") == "2021-W01"

    def test_mid_year(self):
        assert iso_week_key("2024-06-15") == "2024-W24"

    def test_monday_starts_week(self):
        # Sunday 2024-01-07 and Monday 2024-01-08 are in different ISO weeks
        assert iso_week_key("2024-01-07") == "2024-W01"
        assert iso_week_key("2024-01-08") == "2024-W02"


class TestCalendarWeekKey:
    def test_first_day_of_year(self):
        assert calendar_week_key("2021-01-01") == "2021-W01"

    def test_weeks_start_on_sunday(self):
        # 2024-01-06 is a Saturday, 2024-01-07 a Sunday
        assert calendar_week_key("2024-01-06") == "2024-W01"
        assert calendar_week_key("2024-01-07") == "2024-W02"

    def test_keeps_calendar_year(self):
        # ISO puts this date in 2020-W53
        assert calendar_week_key("2021-01-03") == "2021-W02"

    def test_differs_from_iso(self):
        assert calendar_week_key("2021-01-01") != iso_week_key("2021-01-01")


class TestMonthHelpers:
    def test_month_key(self):
        assert month_key("2024-03-15") == "2024-03"

    def test_month_day(self):
        assert month_day("2024-03-15") == "03-15"
