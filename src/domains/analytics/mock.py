# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mock test analysis.

Sectional mock tests carry a per-subject breakdown; full-length mocks (FLMT)
carry only paper-level totals. Subject accuracy is computed over attempted
questions (correct + wrong), so missing mark fields never affect it.
Unattempted questions are tracked next to it.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.domains.analytics.aggregator import AggregatedGroup, aggregate_group, progress_series
from src.domains.analytics.bucketing import BucketMode
from src.domains.analytics.records import (
    FullLengthMockRecord,
    MockTestRecord,
    SubjectDetail,
    accuracy_percent,
)

logger = logging.getLogger(__name__)

WEAK_SUBJECT_ACCURACY = 65.0
WEAK_SUBJECT_MIN_ATTEMPTS = 2
WEAK_SUBJECT_PENALTY = 20.0
WEAK_SUBJECT_LIMIT = 10


@dataclass(frozen=True)
class MockSubjectAggregate:
    """One subject's totals across every mock it appeared in."""

    group: AggregatedGroup
    total_unattempted: int = 0
    total_marks: float = 0.0
    gained_marks: float = 0.0
    lost_marks: float = 0.0
    total_score: float = 0.0

    @property
    def subject(self) -> str:
        return self.group.key

    @property
    def attempts(self) -> int:
        return self.group.attempts

    @property
    def accuracy(self) -> float:
        return self.group.accuracy

    @property
    def total_questions(self) -> int:
        """Attempted plus unattempted questions."""
        return self.group.total_questions + self.total_unattempted

    @property
    def avg_score(self) -> float:
        if self.attempts <= 0:
            return 0.0
        return self.total_score / self.attempts

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "total_correct": self.group.total_correct,
            "total_wrong": self.group.total_wrong,
            "total_unattempted": self.total_unattempted,
            "total_questions": self.total_questions,
            "attempts": self.attempts,
            "accuracy": self.accuracy,
            "total_marks": self.total_marks,
            "gained_marks": self.gained_marks,
            "lost_marks": self.lost_marks,
            "total_score": self.total_score,
            "avg_score": self.avg_score,
        }


@dataclass(frozen=True)
class WeakSubject:
    """Mock subject flagged for attention."""

    aggregate: MockSubjectAggregate
    concern_score: float

    def to_dict(self) -> dict[str, Any]:
        data = self.aggregate.to_dict()
        data["concern_score"] = self.concern_score
        return data


@dataclass(frozen=True)
class MockOverview:
    """Headline numbers across sectional mocks."""

    total_mocks: int = 0
    total_questions: int = 0
    total_correct: int = 0
    avg_score_per_mock: float | None = None

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.total_correct, self.total_questions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_mocks": self.total_mocks,
            "total_questions": self.total_questions,
            "total_correct": self.total_correct,
            "accuracy": self.accuracy,
            "avg_score_per_mock": self.avg_score_per_mock,
        }


class FlmtMetric(str, Enum):
    """Values plotted on the full-length mock chart."""

    MARKS = "marks"
    TIME_SPENT = "time_spent"
    MARKS_PER_MINUTE = "marks_per_minute"


@dataclass(frozen=True)
class FlmtPoint:
    date: str
    test_name: str
    value: float


@dataclass(frozen=True)
class FlmtSummary:
    """Averages over full-length mocks."""

    total_tests: int = 0
    average_marks: float = 0.0
    best_marks: float = 0.0
    average_accuracy: float = 0.0
    average_time_spent: float = 0.0
    average_marks_per_minute: float = 0.0
    weak_subjects: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tests": self.total_tests,
            "average_marks": self.average_marks,
            "best_marks": self.best_marks,
            "average_accuracy": self.average_accuracy,
            "average_time_spent": self.average_time_spent,
            "average_marks_per_minute": self.average_marks_per_minute,
            "weak_subjects": dict(self.weak_subjects),
        }


def _subject_entries(mocks: Iterable[MockTestRecord]) -> dict[str, list[SubjectDetail]]:
    entries: dict[str, list[SubjectDetail]] = {}
    for mock in mocks:
        for detail in mock.subject_details:
            entries.setdefault(detail.subject, []).append(detail)
    return entries


def _sum_present(values: Iterable[float | None]) -> float:
    return sum(value for value in values if value is not None)


def aggregate_mock_subjects(mocks: Iterable[MockTestRecord]) -> list[MockSubjectAggregate]:
    """Per-subject totals across mock tests.

    Args:
        mocks: Sectional mock records.

    Returns:
        Aggregates sorted by total questions descending, then subject.
    """
    result: list[MockSubjectAggregate] = []

    for subject, details in _subject_entries(mocks).items():
        result.append(
            MockSubjectAggregate(
                group=aggregate_group(subject, details),
                total_unattempted=sum(detail.unattempted for detail in details),
                total_marks=_sum_present(detail.total_marks for detail in details),
                gained_marks=_sum_present(detail.gained_marks for detail in details),
                lost_marks=_sum_present(detail.lost_marks for detail in details),
                total_score=sum(detail.score for detail in details),
            )
        )

    return sorted(result, key=lambda item: (-item.total_questions, item.subject))


def mock_overview(mocks: Sequence[MockTestRecord]) -> MockOverview:
    """Totals and average score across mock tests."""
    if not mocks:
        return MockOverview()

    totals = aggregate_group("all", mocks)
    return MockOverview(
        total_mocks=len(mocks),
        total_questions=totals.total_questions,
        total_correct=totals.total_correct,
        avg_score_per_mock=sum(mock.total_score for mock in mocks) / len(mocks),
    )


def mock_progress(mocks: Iterable[MockTestRecord]) -> list[AggregatedGroup]:
    """Daily question and correct totals, ascending by date."""
    return progress_series(mocks, BucketMode.DAILY)


def identify_weak_subjects(
    aggregated: Iterable[MockSubjectAggregate],
    accuracy_threshold: float = WEAK_SUBJECT_ACCURACY,
    min_attempts: int = WEAK_SUBJECT_MIN_ATTEMPTS,
    top_n: int = WEAK_SUBJECT_LIMIT,
) -> list[WeakSubject]:
    """Subjects with low accuracy or too few appearances.

    Concern score is (100 - accuracy), plus a penalty when the subject was
    seen fewer than ``min_attempts`` times.

    Args:
        aggregated: Output of aggregate_mock_subjects.
        accuracy_threshold: Accuracy below which a subject is weak.
        min_attempts: Appearances below which a subject is weak.
        top_n: Maximum subjects returned.

    Returns:
        Weak subjects, highest concern first, ties by subject name.
    """
    candidates: list[WeakSubject] = []

    for item in aggregated:
        if item.accuracy >= accuracy_threshold and item.attempts >= min_attempts:
            continue
        score = 100.0 - item.accuracy
        if item.attempts < min_attempts:
            score += WEAK_SUBJECT_PENALTY
        candidates.append(WeakSubject(aggregate=item, concern_score=score))

    candidates.sort(key=lambda weak: (-weak.concern_score, weak.aggregate.subject))
    return candidates[:top_n]


def flmt_series(
    records: Iterable[FullLengthMockRecord],
    metric: FlmtMetric | str = FlmtMetric.MARKS,
) -> list[FlmtPoint]:
    """Chart series of one metric over full-length mocks, oldest first."""
    metric = FlmtMetric(metric)
    ordered = sorted(records, key=lambda record: (record.date, record.test_name, record.id))
    return [
        FlmtPoint(date=record.date, test_name=record.test_name, value=getattr(record, metric.value))
        for record in ordered
    ]


def flmt_summary(records: Sequence[FullLengthMockRecord]) -> FlmtSummary:
    """Averages, best marks and weak-subject counts over full-length mocks."""
    if not records:
        return FlmtSummary()

    count = len(records)
    weak_subjects: dict[str, int] = {}
    for record in records:
        for subject in record.weak_subjects:
            weak_subjects[subject] = weak_subjects.get(subject, 0) + 1

    return FlmtSummary(
        total_tests=count,
        average_marks=sum(record.marks for record in records) / count,
        best_marks=max(record.marks for record in records),
        average_accuracy=sum(record.accuracy for record in records) / count,
        average_time_spent=sum(record.time_spent for record in records) / count,
        average_marks_per_minute=sum(record.marks_per_minute for record in records) / count,
        weak_subjects=dict(sorted(weak_subjects.items(), key=lambda item: (-item[1], item[0]))),
    )
