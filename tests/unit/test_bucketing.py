# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for record bucketing."""

from datetime import date

import pytest

from src.domains.analytics.bucketing import (
    BucketMode,
    bucket_days,
    bucket_key,
    bucket_label,
    group_records,
    period_range,
)
from src.domains.analytics.records import RevisionRecord


def _record(day: str, subject: str = "Algorithms", type_: str = "DPP") -> RevisionRecord:
    return RevisionRecord(date=day, subject=subject, type=type_, num_questions=5, num_correct=3)


class TestBucketKey:
    """Tests for bucket_key."""

    def test_monday_and_sunday_share_week(self) -> None:
        """Test that both ends of an ISO week map to one key."""
        assert bucket_key(_record("2025-01-06"), "weekly") == "2025-W02"
        assert bucket_key(_record("2025-01-12"), "weekly") == "2025-W02"

    def test_daily_and_monthly_keys(self) -> None:
        """Test daily keys are the date and monthly keys are year-month."""
        record = _record("2025-01-08")

        assert bucket_key(record, BucketMode.DAILY) == "2025-01-08"
        assert bucket_key(record, BucketMode.MONTHLY) == "2025-01"

    def test_subject_and_type_keys(self) -> None:
        """Test category modes."""
        record = _record("2025-01-08", subject="Databases", type_="PYQ")

        assert bucket_key(record, "by-subject") == "Databases"
        assert bucket_key(record, "by-type") == "PYQ"

    def test_unparseable_date_has_no_time_bucket(self) -> None:
        """Test bad dates are skipped only in time modes."""
        record = _record("sometime")

        assert bucket_key(record, "weekly") is None
        assert bucket_key(record, "by-subject") == "Algorithms"

    def test_unknown_mode_raises(self) -> None:
        """Test invalid modes."""
        with pytest.raises(ValueError):
            bucket_key(_record("2025-01-08"), "yearly")


class TestGroupRecords:
    """Tests for group_records."""

    def test_every_dated_record_lands_in_one_bucket(self) -> None:
        """Test bucket completeness across modes."""
        records = [
            _record("2024-12-30"),
            _record("2025-01-06", subject="Databases"),
            _record("2025-01-12", type_="PYQ"),
            _record("2025-02-01"),
            _record(""),
        ]

        for mode in BucketMode:
            groups = group_records(records, mode)
            counted = sum(len(items) for items in groups.values())
            expected = len(records) if not mode.is_time_based else len(records) - 1
            assert counted == expected

    def test_records_keep_input_order_within_bucket(self) -> None:
        """Test in-bucket order."""
        first = _record("2025-01-06")
        second = _record("2025-01-07")

        groups = group_records([first, second], "weekly")

        assert groups == {"2025-W02": [first, second]}


class TestLabelsAndRanges:
    """Tests for labels, bucket lengths and period ranges."""

    def test_week_label(self) -> None:
        """Test weekly labels show the Monday to Sunday range."""
        assert bucket_label("2025-W02", "weekly") == "Week 2 (Jan 6–Jan 12)"

    def test_month_label(self) -> None:
        """Test monthly labels."""
        assert bucket_label("2025-01", "monthly") == "January 2025"

    def test_malformed_keys_label_as_themselves(self) -> None:
        """Test that labels never raise."""
        assert bucket_label("2025-W99", "weekly") == "2025-W99"
        assert bucket_label("later", "monthly") == "later"
        assert bucket_label("2025-01-06", "daily") == "2025-01-06"

    def test_bucket_days(self) -> None:
        """Test bucket lengths."""
        assert bucket_days("2025-01-06", "daily") == 1
        assert bucket_days("2025-W02", "weekly") == 7
        assert bucket_days("2024-02", "monthly") == 29
        assert bucket_days("bad", "monthly") == 0

    def test_bucket_days_rejects_category_modes(self) -> None:
        """Test that category modes have no span."""
        with pytest.raises(ValueError):
            bucket_days("Algorithms", "by-subject")

    def test_weekly_range_includes_partial_weeks(self) -> None:
        """Test weekly range across the year boundary."""
        keys = period_range(date(2024, 12, 25), date(2025, 1, 8), "weekly")

        assert keys == ["2024-W52", "2025-W01", "2025-W02"]

    def test_monthly_range_wraps_year(self) -> None:
        """Test monthly range across December."""
        keys = period_range(date(2024, 11, 20), date(2025, 1, 2), "monthly")

        assert keys == ["2024-11", "2024-12", "2025-01"]

    def test_daily_range(self) -> None:
        """Test daily range is inclusive."""
        keys = period_range(date(2025, 1, 6), date(2025, 1, 8), "daily")

        assert keys == ["2025-01-06", "2025-01-07", "2025-01-08"]

    def test_empty_and_invalid_ranges(self) -> None:
        """Test reversed bounds and category modes."""
        assert period_range(date(2025, 1, 8), date(2025, 1, 6), "daily") == []
        with pytest.raises(ValueError):
            period_range(date(2025, 1, 6), date(2025, 1, 8), "by-type")
