# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics aggregation module.

Reduces groups of normalized records into summary statistics:
- Group totals: questions, correct, wrong, accuracy, attempts
- Subject, type and time-bucketed progress views
- Time efficiency: questions per hour of recorded study time
- Daily volume: average questions per day over a window or per period

All functions are pure. Totals are sums, so results do not depend on input
order. ``total_wrong`` is always derived from the totals and never summed
from records, and every division by zero yields 0.

Usage:
    from src.domains.analytics.aggregator import aggregate_by, time_efficiency

    subjects = aggregate_by(revisions, "by-subject")
    weekly = progress_series(revisions, "weekly")
    efficiency = time_efficiency(revisions, window="weekly", today=today)
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from src.domains.analytics.bucketing import (
    BucketMode,
    bucket_days,
    bucket_label,
    group_records,
    period_range,
)
from src.domains.analytics.records import RevisionRecord, Scorable, accuracy_percent
from src.utils.datetime import days_between, minutes_to_human

logger = logging.getLogger(__name__)


class TimeWindow(str, Enum):
    """Trailing windows for time-filtered views."""

    DAILY = "daily"  # today only
    WEEKLY = "weekly"  # last 7 days
    MONTHLY = "monthly"  # last 30 days

    def contains(self, day: date, today: date) -> bool:
        if day > today:
            return False
        if self is TimeWindow.DAILY:
            return day == today
        span = 7 if self is TimeWindow.WEEKLY else 30
        return day >= today - timedelta(days=span)


@dataclass(frozen=True)
class AggregatedGroup:
    """Totals for one group of records.

    ``total_wrong`` and ``accuracy`` are derived, so the group invariants
    (wrong = questions - correct, 0 <= accuracy <= 100) always hold.
    """

    key: str
    total_questions: int = 0
    total_correct: int = 0
    attempts: int = 0

    @property
    def total_wrong(self) -> int:
        return self.total_questions - self.total_correct

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.total_correct, self.total_questions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "total_questions": self.total_questions,
            "total_correct": self.total_correct,
            "total_wrong": self.total_wrong,
            "accuracy": self.accuracy,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class TimeEfficiency:
    """Study time and pace for one subject."""

    subject: str
    total_time_minutes: float = 0.0
    total_questions: int = 0
    attempts: int = 0

    @property
    def efficiency(self) -> float:
        return questions_per_hour(self.total_questions, self.total_time_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "total_time_minutes": self.total_time_minutes,
            "time_spent": minutes_to_human(self.total_time_minutes),
            "total_questions": self.total_questions,
            "attempts": self.attempts,
            "efficiency": self.efficiency,
        }


@dataclass(frozen=True)
class OverallSummary:
    """Headline numbers across every revision."""

    total_revisions: int = 0
    total_questions: int = 0
    total_correct: int = 0
    total_time_minutes: float = 0.0
    active_days: int = 0

    @property
    def total_wrong(self) -> int:
        return self.total_questions - self.total_correct

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.total_correct, self.total_questions)

    @property
    def efficiency(self) -> float:
        return questions_per_hour(self.total_questions, self.total_time_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_revisions": self.total_revisions,
            "total_questions": self.total_questions,
            "total_correct": self.total_correct,
            "total_wrong": self.total_wrong,
            "accuracy": self.accuracy,
            "total_time_minutes": self.total_time_minutes,
            "efficiency": self.efficiency,
            "active_days": self.active_days,
        }


@dataclass(frozen=True)
class PeriodVolume:
    """Question volume for one week or month."""

    period: str
    label: str
    questions: int = 0
    correct: int = 0
    days: int = 0

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.correct, self.questions)

    @property
    def avg_questions_per_day(self) -> float:
        if self.days <= 0:
            return 0.0
        return self.questions / self.days

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "label": self.label,
            "questions": self.questions,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "avg_questions_per_day": self.avg_questions_per_day,
        }


def questions_per_hour(questions: float, minutes: float) -> float:
    """Efficiency in questions per hour; 0 when no time was recorded."""
    if minutes <= 0:
        return 0.0
    return questions / (minutes / 60)


def aggregate_group(key: str, records: Iterable[Scorable]) -> AggregatedGroup:
    """Reduce one group of records to totals.

    Correct answers are capped at the question total so that a group built
    from inconsistent documents still satisfies its invariants.

    Args:
        key: Group key.
        records: Records exposing ``questions`` and ``correct``.

    Returns:
        AggregatedGroup for the records.

    Example:
        >>> group = aggregate_group("Algorithms", revisions)
        >>> group.accuracy
        60.0
    """
    total_questions = 0
    total_correct = 0
    attempts = 0

    for record in records:
        total_questions += record.questions
        total_correct += record.correct
        attempts += 1

    return AggregatedGroup(
        key=key,
        total_questions=total_questions,
        total_correct=min(total_correct, total_questions),
        attempts=attempts,
    )


def aggregate_by(records: Iterable[Any], mode: BucketMode | str) -> list[AggregatedGroup]:
    """Group records and aggregate each group, ordered by key.

    Args:
        records: Normalized records.
        mode: Bucketing mode.

    Returns:
        One AggregatedGroup per bucket, ascending by key.
    """
    groups = group_records(records, mode)
    return [aggregate_group(key, groups[key]) for key in sorted(groups)]


def subject_analysis(records: Iterable[Any]) -> dict[str, AggregatedGroup]:
    """Totals per subject."""
    return {group.key: group for group in aggregate_by(records, BucketMode.BY_SUBJECT)}


def type_analysis(records: Iterable[Any]) -> dict[str, AggregatedGroup]:
    """Totals per revision type."""
    return {group.key: group for group in aggregate_by(records, BucketMode.BY_TYPE)}


def progress_series(records: Iterable[Any], mode: BucketMode | str) -> list[AggregatedGroup]:
    """Time-bucketed totals ordered by bucket ascending.

    Raises:
        ValueError: If mode is not daily, weekly or monthly.
    """
    mode = BucketMode(mode)
    if not mode.is_time_based:
        raise ValueError(f"{mode.value} is not a time bucketing mode")
    return aggregate_by(records, mode)


def time_efficiency(
    records: Iterable[RevisionRecord],
    window: TimeWindow | str | None = None,
    today: date | None = None,
) -> list[TimeEfficiency]:
    """Time spent and questions per hour, per subject.

    Only records with a positive recorded time count. With a window, records
    outside it (or with unparseable dates) are left out as well.

    Args:
        records: Revision records.
        window: Optional trailing window.
        today: Reference day for the window (required with a window).

    Returns:
        One entry per subject, most time spent first.

    Raises:
        ValueError: If a window is given without today.
    """
    if window is not None:
        window = TimeWindow(window)
        if today is None:
            raise ValueError("today is required when filtering by window")

    totals: dict[str, list[float]] = {}

    for record in records:
        if record.time_spent_minutes <= 0:
            continue
        if window is not None:
            day = record.parsed_date
            if day is None or not window.contains(day, today):
                continue
        entry = totals.setdefault(record.subject, [0.0, 0, 0])
        entry[0] += record.time_spent_minutes
        entry[1] += record.num_questions
        entry[2] += 1

    result = [
        TimeEfficiency(
            subject=subject,
            total_time_minutes=minutes,
            total_questions=int(questions),
            attempts=int(attempts),
        )
        for subject, (minutes, questions, attempts) in totals.items()
    ]
    return sorted(result, key=lambda item: (-item.total_time_minutes, item.subject))


def overall_summary(records: Sequence[RevisionRecord]) -> OverallSummary:
    """Headline totals across all revisions."""
    group = aggregate_group("all", records)
    active_days = {record.parsed_date for record in records} - {None}

    return OverallSummary(
        total_revisions=group.attempts,
        total_questions=group.total_questions,
        total_correct=group.total_correct,
        total_time_minutes=sum(record.time_spent_minutes for record in records),
        active_days=len(active_days),
    )


def average_questions_per_day(
    records: Sequence[RevisionRecord],
    window: str,
    today: date,
) -> float:
    """Average questions per day over a trailing window.

    Args:
        records: Revision records.
        window: "week" (last 7 days), "month" (last 30 days) or "all"
            (from the first dated record through today, inclusive).
        today: Reference day.

    Returns:
        Average questions per day, 0 with no dated records.

    Raises:
        ValueError: If window is unknown.
    """
    dated = [(record.parsed_date, record) for record in records]
    dated = [(day, record) for day, record in dated if day is not None and day <= today]
    if not dated:
        return 0.0

    if window == "week":
        days = 7
        start = today - timedelta(days=days)
    elif window == "month":
        days = 30
        start = today - timedelta(days=days)
    elif window == "all":
        start = min(day for day, _ in dated)
        days = days_between(start, today) + 1
    else:
        raise ValueError(f"Unknown window: {window}")

    total = sum(record.num_questions for day, record in dated if day >= start)
    return total / days


def period_volume(
    records: Sequence[RevisionRecord],
    mode: BucketMode | str,
    today: date,
) -> list[PeriodVolume]:
    """Questions and daily average per week or month.

    Periods from the first dated record through today are all present; weeks
    or months without sessions show zeros.

    Args:
        records: Revision records.
        mode: weekly or monthly.
        today: Last day of the timeline.

    Returns:
        PeriodVolume entries ascending by period.

    Raises:
        ValueError: If mode is not weekly or monthly.
    """
    mode = BucketMode(mode)
    if mode not in (BucketMode.WEEKLY, BucketMode.MONTHLY):
        raise ValueError("period volume supports weekly or monthly buckets")

    groups = group_records(records, mode)
    days = [record.parsed_date for record in records]
    days = [day for day in days if day is not None]
    if not days:
        return []

    keys = set(groups) | set(period_range(min(days), today, mode))
    volumes: list[PeriodVolume] = []

    for key in sorted(keys):
        group = aggregate_group(key, groups.get(key, []))
        volumes.append(
            PeriodVolume(
                period=key,
                label=bucket_label(key, mode),
                questions=group.total_questions,
                correct=group.total_correct,
                days=bucket_days(key, mode),
            )
        )

    return volumes
