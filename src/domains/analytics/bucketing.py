# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grouping of normalized records into buckets.

Modes:
- daily: the record's date string verbatim
- weekly: ISO 8601 week, ``{iso_year}-W{week:02d}``
- monthly: ``{year}-{month:02d}``
- by-subject / by-type: the record's subject or type

A record whose date cannot be parsed has no time bucket and is skipped in
the time modes; it still counts in the subject and type views. Key order in
the returned mapping carries no meaning; callers sort.
"""

import logging
from collections.abc import Iterable
from datetime import date, timedelta
from enum import Enum
from typing import Protocol, TypeVar

from src.utils.datetime import (
    days_in_month,
    format_record_date,
    iso_week_key,
    month_key,
    parse_record_date,
    parse_week_key,
    week_bounds,
)

logger = logging.getLogger(__name__)


class BucketMode(str, Enum):
    """Bucketing modes for grouping records."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    BY_SUBJECT = "by-subject"
    BY_TYPE = "by-type"

    @property
    def is_time_based(self) -> bool:
        return self in (BucketMode.DAILY, BucketMode.WEEKLY, BucketMode.MONTHLY)


class Bucketable(Protocol):
    @property
    def date(self) -> str: ...

    @property
    def subject(self) -> str: ...

    @property
    def type(self) -> str: ...


R = TypeVar("R", bound=Bucketable)


def bucket_key(record: Bucketable, mode: BucketMode | str) -> str | None:
    """Compute the bucket key of a record.

    Args:
        record: Normalized record.
        mode: Bucketing mode.

    Returns:
        The key, or None when a time mode meets an unparseable date.

    Raises:
        ValueError: If mode is not a known bucketing mode.
    """
    mode = BucketMode(mode)

    if mode is BucketMode.BY_SUBJECT:
        return record.subject
    if mode is BucketMode.BY_TYPE:
        return record.type

    parsed = parse_record_date(record.date)
    if parsed is None:
        return None

    if mode is BucketMode.DAILY:
        return record.date
    if mode is BucketMode.WEEKLY:
        return iso_week_key(parsed)
    return month_key(parsed)


def group_records(records: Iterable[R], mode: BucketMode | str) -> dict[str, list[R]]:
    """Partition records into buckets.

    Every record with a usable key lands in exactly one bucket, and within a
    bucket records keep their input order.

    Args:
        records: Normalized records.
        mode: Bucketing mode.

    Returns:
        Mapping of bucket key to the records in that bucket.
    """
    mode = BucketMode(mode)
    groups: dict[str, list[R]] = {}
    skipped = 0

    for record in records:
        key = bucket_key(record, mode)
        if key is None:
            skipped += 1
            continue
        groups.setdefault(key, []).append(record)

    if skipped:
        logger.debug(
            "Skipped records with unparseable dates: mode=%s, count=%d", mode.value, skipped
        )

    return groups


def bucket_label(key: str, mode: BucketMode | str) -> str:
    """Human label for a bucket key.

    Example:
        >>> bucket_label("2025-W02", "weekly")
        'Week 2 (Jan 6–Jan 12)'
        >>> bucket_label("2025-01", "monthly")
        'January 2025'
    """
    mode = BucketMode(mode)

    if mode is BucketMode.WEEKLY:
        parts = parse_week_key(key)
        if parts is None:
            return key
        try:
            monday, sunday = week_bounds(*parts)
        except ValueError:
            return key
        return f"Week {parts[1]} ({_short_day(monday)}–{_short_day(sunday)})"

    if mode is BucketMode.MONTHLY:
        parsed = parse_record_date(f"{key}-01")
        return parsed.strftime("%B %Y") if parsed else key

    return key


def _short_day(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def bucket_days(key: str, mode: BucketMode | str) -> int:
    """Number of calendar days a time bucket spans (0 for malformed keys)."""
    mode = BucketMode(mode)

    if mode is BucketMode.DAILY:
        return 1
    if mode is BucketMode.WEEKLY:
        return 7 if parse_week_key(key) else 0
    if mode is BucketMode.MONTHLY:
        parsed = parse_record_date(f"{key}-01")
        return days_in_month(parsed.year, parsed.month) if parsed else 0
    raise ValueError(f"{mode.value} is not a time bucketing mode")


def period_range(start: date, end: date, mode: BucketMode | str) -> list[str]:
    """Every time bucket key from start to end inclusive, ascending.

    Args:
        start: First day.
        end: Last day.
        mode: A time bucketing mode.

    Returns:
        Bucket keys in order (empty when end is before start).

    Raises:
        ValueError: If mode is not time based.
    """
    mode = BucketMode(mode)
    if not mode.is_time_based:
        raise ValueError(f"{mode.value} is not a time bucketing mode")

    keys: list[str] = []
    if end < start:
        return keys

    if mode is BucketMode.MONTHLY:
        year, month = start.year, start.month
        while (year, month) <= (end.year, end.month):
            keys.append(f"{year}-{month:02d}")
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        return keys

    if mode is BucketMode.WEEKLY:
        # Step from Monday so the last partial week is included
        current = start - timedelta(days=start.weekday())
        while current <= end:
            keys.append(iso_week_key(current))
            current += timedelta(days=7)
        return keys

    current = start
    while current <= end:
        keys.append(format_record_date(current))
        current += timedelta(days=1)
    return keys
