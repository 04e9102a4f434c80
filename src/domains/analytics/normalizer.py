# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Record normalization.

Coerces raw documents of unknown shape into the record types in records.py.
The store enforces no schema, so normalization never raises:

- numeric fields: invalid strings, NaN, infinities, booleans, negatives -> 0
- required strings: missing or non-text -> "" (subject -> "Unknown")
- arrays: missing or non-list -> empty tuple
- counts: ``correct`` is clamped to ``questions`` on revision records

Field names follow the stored camelCase documents; snake_case keys are
accepted as well.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from src.domains.analytics.records import (
    UNKNOWN_SUBJECT,
    FullLengthMockRecord,
    MockTestRecord,
    QuestionRecord,
    RevisionRecord,
    RevisionType,
    SubjectDetail,
    WeakTopicEntry,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _field(raw: Mapping[str, Any], *names: str) -> Any:
    """First present value among several key spellings."""
    for name in names:
        value = raw.get(name, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return None


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if raw is not None:
        logger.debug("Non-mapping record replaced by defaults: type=%s", type(raw).__name__)
    return {}


def _number(value: Any) -> float | None:
    """Parse a finite number, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _amount(value: Any) -> float:
    """Non-negative number, 0 when missing or invalid."""
    number = _number(value)
    if number is None or number < 0:
        return 0.0
    return number


def _signed_amount(value: Any) -> float:
    """Number that may be negative (scores with negative marking)."""
    number = _number(value)
    return 0.0 if number is None else number


def _count(value: Any) -> int:
    return int(_amount(value))


def _text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _date_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return _text(value)


def _string_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return ()
    return tuple(text for text in (_text(item) for item in items) if text)


def normalize_revision(raw: Any) -> RevisionRecord:
    """Normalize a raw revision document.

    Args:
        raw: Document of any shape.

    Returns:
        A RevisionRecord with safe defaults for every missing or bad field.
    """
    data = _as_mapping(raw)

    num_questions = _count(_field(data, "numQuestions", "num_questions"))
    num_correct = _count(_field(data, "numCorrect", "num_correct"))
    if num_correct > num_questions:
        logger.debug(
            "Clamped correct count: correct=%d, questions=%d", num_correct, num_questions
        )
        num_correct = num_questions

    return RevisionRecord(
        date=_date_text(data.get("date")),
        subject=_text(data.get("subject"), UNKNOWN_SUBJECT),
        type=_text(data.get("type"), RevisionType.OTHER.value),
        num_questions=num_questions,
        num_correct=num_correct,
        time_spent_minutes=_amount(_field(data, "timeSpentMinutes", "time_spent_minutes")),
        remarks=_text(data.get("remarks")),
        weak_topics=_text(_field(data, "weakTopics", "weak_topics")),
        id=_text(data.get("id")),
    )


def normalize_subject_detail(raw: Any) -> SubjectDetail:
    """Normalize one subject breakdown entry of a mock test."""
    data = _as_mapping(raw)

    def optional(*names: str) -> float | None:
        return _number(_field(data, *names))

    return SubjectDetail(
        subject=_text(data.get("subject"), UNKNOWN_SUBJECT),
        score=_signed_amount(data.get("score")),
        correct=_count(data.get("correct")),
        wrong=_count(data.get("wrong")),
        unattempted=_count(data.get("unattempted")),
        total_marks=optional("totalMarks", "total_marks"),
        gained_marks=optional("gainedMarks", "gained_marks"),
        lost_marks=optional("lostMarks", "lost_marks"),
    )


def normalize_mock_test(raw: Any) -> MockTestRecord:
    """Normalize a raw mock test document.

    Non-mapping entries inside ``subjectDetails`` are dropped.
    """
    data = _as_mapping(raw)

    details = _field(data, "subjectDetails", "subject_details")
    if not isinstance(details, (list, tuple)):
        details = ()

    total_questions = _count(_field(data, "totalQuestions", "total_questions"))
    total_correct = _count(_field(data, "totalCorrect", "total_correct"))
    total_incorrect = _count(_field(data, "totalIncorrect", "total_incorrect"))
    if total_correct + total_incorrect > total_questions:
        logger.debug(
            "Clamped mock counts: correct=%d, incorrect=%d, questions=%d",
            total_correct,
            total_incorrect,
            total_questions,
        )
        total_correct = min(total_correct, total_questions)
        total_incorrect = total_questions - total_correct

    return MockTestRecord(
        date=_date_text(data.get("date")),
        provider=_text(data.get("provider")),
        test_type=_text(_field(data, "testType", "test_type")),
        test_name=_text(_field(data, "testName", "test_name")),
        total_score=_signed_amount(_field(data, "totalScore", "total_score")),
        total_marks=_amount(_field(data, "totalMarks", "total_marks")),
        total_questions=total_questions,
        total_correct=total_correct,
        total_incorrect=total_incorrect,
        subject_details=tuple(
            normalize_subject_detail(entry) for entry in details if isinstance(entry, Mapping)
        ),
        silly_mistakes=_text(_field(data, "sillyMistakes", "silly_mistakes")),
        id=_text(data.get("id")),
    )


def normalize_full_length_mock(raw: Any) -> FullLengthMockRecord:
    """Normalize a raw full-length mock (``fmt``) document."""
    data = _as_mapping(raw)

    return FullLengthMockRecord(
        date=_date_text(data.get("date")),
        test_name=_text(_field(data, "testName", "test_name")),
        correct=_count(data.get("correct")),
        incorrect=_count(data.get("incorrect")),
        marks=_signed_amount(data.get("marks")),
        time_spent=_amount(_field(data, "timeSpent", "time_spent")),
        weak_subjects=_string_list(_field(data, "weakSubjects", "weak_subjects")),
        remarks=_text(data.get("remarks")),
        id=_text(data.get("id")),
    )


def normalize_question(raw: Any) -> QuestionRecord:
    """Normalize a saved question; its date comes from the stored timestamp."""
    data = _as_mapping(raw)

    return QuestionRecord(
        date=_date_text(_field(data, "timestamp", "date")),
        subject=_text(data.get("subject"), UNKNOWN_SUBJECT),
        type=_text(data.get("type"), RevisionType.OTHER.value),
        question=_text(data.get("question")),
        remarks=_text(data.get("remarks")),
        importance_level=_count(_field(data, "importanceLevel", "importance_level")),
        id=_text(data.get("id")),
    )


def normalize_weak_topic(raw: Any) -> WeakTopicEntry:
    """Normalize a manually recorded weak topic."""
    data = _as_mapping(raw)

    resolved = _field(data, "isResolved", "is_resolved")
    if isinstance(resolved, str):
        is_resolved = resolved.strip().lower() == "true"
    else:
        is_resolved = resolved is True

    return WeakTopicEntry(
        id=_text(data.get("id")),
        topic=_text(data.get("topic")),
        subject=_text(data.get("subject"), UNKNOWN_SUBJECT),
        status=_text(data.get("status")),
        is_resolved=is_resolved,
    )


def _iterate(raws: Any) -> Iterable[Any]:
    if isinstance(raws, (list, tuple)):
        return raws
    if raws is None or isinstance(raws, (str, bytes, Mapping)):
        return ()
    try:
        return list(raws)
    except TypeError:
        return ()


def normalize_revisions(raws: Any) -> list[RevisionRecord]:
    """Normalize a sequence of revision documents (None -> empty list)."""
    return [normalize_revision(raw) for raw in _iterate(raws)]


def normalize_mock_tests(raws: Any) -> list[MockTestRecord]:
    """Normalize a sequence of mock test documents."""
    return [normalize_mock_test(raw) for raw in _iterate(raws)]


def normalize_full_length_mocks(raws: Any) -> list[FullLengthMockRecord]:
    """Normalize a sequence of full-length mock documents."""
    return [normalize_full_length_mock(raw) for raw in _iterate(raws)]


def normalize_questions(raws: Any) -> list[QuestionRecord]:
    """Normalize a sequence of saved question documents."""
    return [normalize_question(raw) for raw in _iterate(raws)]


def normalize_weak_topics(raws: Any) -> list[WeakTopicEntry]:
    """Normalize a sequence of weak topic documents."""
    return [normalize_weak_topic(raw) for raw in _iterate(raws)]
