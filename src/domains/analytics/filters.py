# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Record filtering for the detail view and the search assistant.

All criteria are optional and combine with AND. Date-based criteria drop
records whose date cannot be parsed.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum

from src.domains.analytics.records import QuestionRecord, RevisionRecord


class Period(str, Enum):
    """Relative periods, evaluated against an explicit reference day."""

    ALL_TIME = "All Time"
    LAST_7_DAYS = "Last 7 days"
    LAST_30_DAYS = "Last 30 days"
    THIS_MONTH = "This Month"
    THIS_YEAR = "This Year"

    def cutoff(self, today: date) -> date | None:
        """Earliest day included, None for all time."""
        if self is Period.LAST_7_DAYS:
            return today - timedelta(days=7)
        if self is Period.LAST_30_DAYS:
            return today - timedelta(days=30)
        if self is Period.THIS_MONTH:
            return today.replace(day=1)
        if self is Period.THIS_YEAR:
            return today.replace(month=1, day=1)
        return None


@dataclass(frozen=True)
class RecordFilter:
    """Filter criteria.

    Attributes:
        subject: Exact subject match.
        type: Exact type match.
        period: Relative period.
        search: Case-insensitive text searched in remarks, weak topics and
            question text.
        subjects: Any of these, case-insensitive substring of the subject.
        types: Any of these, case-insensitive substring of the type.
        topics: Any of these, case-insensitive substring of remarks or weak
            topics.
        start_date: Earliest day included.
        end_date: Latest day included.
        min_accuracy: Lowest session accuracy included.
        max_accuracy: Highest session accuracy included.
        importance_level: Exact importance level (saved questions only).
    """

    subject: str | None = None
    type: str | None = None
    period: Period = Period.ALL_TIME
    search: str = ""
    subjects: tuple[str, ...] = field(default_factory=tuple)
    types: tuple[str, ...] = field(default_factory=tuple)
    topics: tuple[str, ...] = field(default_factory=tuple)
    start_date: date | None = None
    end_date: date | None = None
    min_accuracy: float | None = None
    max_accuracy: float | None = None
    importance_level: int | None = None


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(needle.lower() in lowered for needle in needles if needle)


def _in_dates(parsed: date | None, criteria: RecordFilter, today: date) -> bool:
    cutoff = Period(criteria.period).cutoff(today)
    if cutoff is None and criteria.start_date is None and criteria.end_date is None:
        return True
    if parsed is None:
        return False
    if cutoff is not None and parsed < cutoff:
        return False
    if criteria.start_date is not None and parsed < criteria.start_date:
        return False
    if criteria.end_date is not None and parsed > criteria.end_date:
        return False
    return True


def matches_revision(record: RevisionRecord, criteria: RecordFilter, today: date) -> bool:
    """Whether a revision passes every criterion."""
    if criteria.subject and record.subject != criteria.subject:
        return False
    if criteria.type and record.type != criteria.type:
        return False
    if criteria.subjects and not _contains_any(record.subject, criteria.subjects):
        return False
    if criteria.types and not _contains_any(record.type, criteria.types):
        return False
    if criteria.topics and not _contains_any(record.topic_text, criteria.topics):
        return False
    if criteria.search.strip() and not _contains_any(record.topic_text, [criteria.search.strip()]):
        return False
    if criteria.min_accuracy is not None and record.accuracy < criteria.min_accuracy:
        return False
    if criteria.max_accuracy is not None and record.accuracy > criteria.max_accuracy:
        return False
    return _in_dates(record.parsed_date, criteria, today)


def matches_question(record: QuestionRecord, criteria: RecordFilter, today: date) -> bool:
    """Whether a saved question passes the criteria that apply to questions."""
    if criteria.subject and record.subject != criteria.subject:
        return False
    if criteria.type and record.type != criteria.type:
        return False
    if criteria.subjects and not _contains_any(record.subject, criteria.subjects):
        return False
    if criteria.types and not _contains_any(record.type, criteria.types):
        return False
    level = criteria.importance_level
    if level is not None and record.importance_level != level:
        return False
    search = criteria.search.strip()
    if search and not _contains_any(f"{record.question} {record.remarks}", [search]):
        return False
    return _in_dates(record.parsed_date, criteria, today)


def filter_revisions(
    records: Iterable[RevisionRecord],
    criteria: RecordFilter,
    today: date,
) -> list[RevisionRecord]:
    """Revisions matching the criteria, in input order."""
    return [record for record in records if matches_revision(record, criteria, today)]


def filter_questions(
    records: Iterable[QuestionRecord],
    criteria: RecordFilter,
    today: date,
) -> list[QuestionRecord]:
    """Saved questions matching the criteria, in input order."""
    return [record for record in records if matches_question(record, criteria, today)]
