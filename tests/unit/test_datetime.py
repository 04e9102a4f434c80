# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for date helpers."""

from datetime import date, datetime, timezone

import pytest

from src.utils.datetime import (
    days_between,
    days_in_month,
    format_record_date,
    iso_week_key,
    minutes_to_human,
    month_key,
    parse_record_date,
    parse_week_key,
    utc_now,
    week_bounds,
)


class TestParseRecordDate:
    """Tests for parse_record_date."""

    def test_parses_iso_date_string(self) -> None:
        """Test plain YYYY-MM-DD strings."""
        assert parse_record_date("2025-01-12") == date(2025, 1, 12)

    def test_parses_datetime_string(self) -> None:
        """Test strings with a time component and a Z suffix."""
        assert parse_record_date("2025-01-12T18:30:00Z") == date(2025, 1, 12)

    def test_accepts_date_and_datetime_objects(self) -> None:
        """Test that date objects pass through and datetimes are truncated."""
        assert parse_record_date(date(2025, 1, 6)) == date(2025, 1, 6)
        assert parse_record_date(datetime(2025, 1, 6, 23, 59, tzinfo=timezone.utc)) == date(
            2025, 1, 6
        )

    @pytest.mark.parametrize("value", ["", "   ", "12/01/2025", "not a date", None, 20250112, []])
    def test_unparseable_values_return_none(self, value: object) -> None:
        """Test that bad values never raise."""
        assert parse_record_date(value) is None


class TestBucketKeys:
    """Tests for week and month keys."""

    def test_monday_and_sunday_share_iso_week(self) -> None:
        """Test that a Monday and the following Sunday map to the same week."""
        assert iso_week_key(date(2025, 1, 6)) == "2025-W02"
        assert iso_week_key(date(2025, 1, 12)) == "2025-W02"

    def test_iso_week_year_differs_from_calendar_year(self) -> None:
        """Test days at the turn of the year use the ISO week-year."""
        assert iso_week_key(date(2024, 12, 30)) == "2025-W01"
        assert iso_week_key(date(2021, 1, 3)) == "2020-W53"

    def test_month_key(self) -> None:
        """Test month keys are zero padded."""
        assert month_key(date(2025, 3, 9)) == "2025-03"

    def test_parse_week_key(self) -> None:
        """Test week keys split into year and week."""
        assert parse_week_key("2025-W02") == (2025, 2)
        assert parse_week_key("2025-02") is None
        assert parse_week_key("abcd-Wxy") is None

    def test_week_bounds(self) -> None:
        """Test ISO week bounds run Monday to Sunday."""
        assert week_bounds(2025, 2) == (date(2025, 1, 6), date(2025, 1, 12))


class TestCalendarHelpers:
    """Tests for small calendar helpers."""

    def test_days_in_month_handles_leap_years(self) -> None:
        """Test February lengths."""
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2025, 2) == 28

    def test_days_between(self) -> None:
        """Test signed day differences."""
        assert days_between(date(2025, 1, 1), date(2025, 1, 11)) == 10
        assert days_between(date(2025, 1, 11), date(2025, 1, 1)) == -10

    def test_format_record_date(self) -> None:
        """Test dates format as stored."""
        assert format_record_date(date(2025, 1, 6)) == "2025-01-06"

    @pytest.mark.parametrize(
        ("minutes", "expected"),
        [(0, "0m"), (45, "45m"), (120, "2h"), (150, "2h 30m"), (-5, "0m")],
    )
    def test_minutes_to_human(self, minutes: float, expected: str) -> None:
        """Test human duration strings."""
        assert minutes_to_human(minutes) == expected

    def test_utc_now_is_timezone_aware(self) -> None:
        """Test that utc_now carries UTC tzinfo."""
        assert utc_now().tzinfo is timezone.utc
