# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Normalized record types.

Documents from the store have no enforced schema. After the normalization
pass (see normalizer.py) every record is one of the frozen dataclasses
below, tagged by ``kind``; nothing past that boundary touches raw mappings.

Every scored record exposes ``questions`` and ``correct`` so the aggregator
can sum revisions, mock tests and mock subject entries the same way.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Protocol

from src.utils.datetime import parse_record_date

UNKNOWN_SUBJECT = "Unknown"
MIXED_SUBJECT = "Mixed"

# Questions in a full-length GATE mock paper
FLMT_TOTAL_QUESTIONS = 65

SUBJECTS: tuple[str, ...] = (
    "Engineering Mathematics",
    "Digital Logic",
    "Computer Organization and Architecture",
    "C Programming",
    "Data Structures",
    "Algorithms",
    "Theory of Computation",
    "Compiler Design",
    "Operating System",
    "Databases",
    "Computer Networks",
    "Discrete Mathematics",
    "Aptitude",
)


class RecordKind(str, Enum):
    """Discriminator for normalized records."""

    REVISION = "revision"
    MOCK_TEST = "mock_test"
    FULL_LENGTH_MOCK = "full_length_mock"
    QUESTION = "question"
    WEAK_TOPIC = "weak_topic"


class RevisionType(str, Enum):
    """Revision session categories."""

    DPP = "DPP"
    PYQ = "PYQ"
    MOCK_TEST = "Mock Test"
    OTHER = "Other"


class Scorable(Protocol):
    """Anything that contributes attempted and correct question counts."""

    @property
    def questions(self) -> int: ...

    @property
    def correct(self) -> int: ...


def accuracy_percent(correct: float, total: float) -> float:
    """Accuracy as a percentage, clamped to [0, 100] and 0 for an empty total."""
    if total <= 0:
        return 0.0
    return min(100.0, max(0.0, correct / total * 100))


@dataclass(frozen=True)
class RevisionRecord:
    """One logged study session."""

    date: str
    subject: str
    type: str
    num_questions: int = 0
    num_correct: int = 0
    time_spent_minutes: float = 0.0
    remarks: str = ""
    weak_topics: str = ""
    id: str = ""
    kind: RecordKind = field(default=RecordKind.REVISION, init=False)

    @property
    def questions(self) -> int:
        return self.num_questions

    @property
    def correct(self) -> int:
        return self.num_correct

    @property
    def num_wrong(self) -> int:
        return self.num_questions - self.num_correct

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.num_correct, self.num_questions)

    @property
    def parsed_date(self) -> date | None:
        return parse_record_date(self.date)

    @property
    def topic_text(self) -> str:
        """Free text searched for topics: remarks plus weak topics."""
        return f"{self.remarks} {self.weak_topics}".strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the document shape stored in the revisions collection."""
        return {
            "date": self.date,
            "subject": self.subject,
            "type": self.type,
            "numQuestions": self.num_questions,
            "numCorrect": self.num_correct,
            "timeSpentMinutes": self.time_spent_minutes,
            "remarks": self.remarks,
            "weakTopics": self.weak_topics,
        }


@dataclass(frozen=True)
class SubjectDetail:
    """Per-subject breakdown inside a mock test.

    Mark fields are None when the document did not supply a number.
    """

    subject: str
    score: float = 0.0
    correct: int = 0
    wrong: int = 0
    unattempted: int = 0
    total_marks: float | None = None
    gained_marks: float | None = None
    lost_marks: float | None = None

    @property
    def attempted(self) -> int:
        return self.correct + self.wrong

    @property
    def questions(self) -> int:
        return self.attempted

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.correct, self.attempted)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "subject": self.subject,
            "score": self.score,
            "correct": self.correct,
            "wrong": self.wrong,
            "unattempted": self.unattempted,
        }
        for key, value in (
            ("totalMarks", self.total_marks),
            ("gainedMarks", self.gained_marks),
            ("lostMarks", self.lost_marks),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class MockTestRecord:
    """One logged mock exam attempt."""

    date: str
    provider: str
    test_type: str
    test_name: str
    total_score: float = 0.0
    total_marks: float = 0.0
    total_questions: int = 0
    total_correct: int = 0
    total_incorrect: int = 0
    subject_details: tuple[SubjectDetail, ...] = ()
    silly_mistakes: str = ""
    id: str = ""
    kind: RecordKind = field(default=RecordKind.MOCK_TEST, init=False)

    @property
    def questions(self) -> int:
        return self.total_questions

    @property
    def correct(self) -> int:
        return self.total_correct

    @property
    def subject(self) -> str:
        return MIXED_SUBJECT

    @property
    def type(self) -> str:
        return self.test_type

    @property
    def total_unattempted(self) -> int:
        return max(0, self.total_questions - self.total_correct - self.total_incorrect)

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.total_correct, self.total_questions)

    @property
    def parsed_date(self) -> date | None:
        return parse_record_date(self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "provider": self.provider,
            "testType": self.test_type,
            "testName": self.test_name,
            "totalScore": self.total_score,
            "totalMarks": self.total_marks,
            "totalQuestions": self.total_questions,
            "totalCorrect": self.total_correct,
            "totalIncorrect": self.total_incorrect,
            "subjectDetails": [detail.to_dict() for detail in self.subject_details],
            "sillyMistakes": self.silly_mistakes,
        }


@dataclass(frozen=True)
class FullLengthMockRecord:
    """One full-length mock test (FLMT) result."""

    date: str
    test_name: str
    correct: int = 0
    incorrect: int = 0
    marks: float = 0.0
    time_spent: float = 0.0
    weak_subjects: tuple[str, ...] = ()
    remarks: str = ""
    id: str = ""
    kind: RecordKind = field(default=RecordKind.FULL_LENGTH_MOCK, init=False)

    @property
    def questions(self) -> int:
        return FLMT_TOTAL_QUESTIONS

    @property
    def unattempted(self) -> int:
        return max(0, FLMT_TOTAL_QUESTIONS - self.correct - self.incorrect)

    @property
    def accuracy(self) -> float:
        return accuracy_percent(self.correct, FLMT_TOTAL_QUESTIONS)

    @property
    def marks_per_minute(self) -> float:
        if self.time_spent <= 0:
            return 0.0
        return self.marks / self.time_spent

    @property
    def parsed_date(self) -> date | None:
        return parse_record_date(self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "testName": self.test_name,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "marks": self.marks,
            "timeSpent": self.time_spent,
            "weakSubjects": list(self.weak_subjects),
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class QuestionRecord:
    """A question saved for later review."""

    date: str
    subject: str
    type: str
    question: str = ""
    remarks: str = ""
    importance_level: int = 0
    id: str = ""
    kind: RecordKind = field(default=RecordKind.QUESTION, init=False)

    @property
    def parsed_date(self) -> date | None:
        return parse_record_date(self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "type": self.type,
            "question": self.question,
            "remarks": self.remarks,
            "importanceLevel": self.importance_level,
        }


@dataclass(frozen=True)
class WeakTopicEntry:
    """A weak topic the student recorded manually."""

    id: str
    topic: str
    subject: str
    status: str = ""
    is_resolved: bool = False
    kind: RecordKind = field(default=RecordKind.WEAK_TOPIC, init=False)


Record = RevisionRecord | MockTestRecord | FullLengthMockRecord | QuestionRecord | WeakTopicEntry
