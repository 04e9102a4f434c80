# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Topic extraction and weakness scoring.

Free-text ``remarks`` and ``weak_topics`` of revision sessions are split into
short topic phrases. Every (subject, phrase) pair collects the sessions that
mention it, and each topic is scored on:

- average accuracy: mean of per-session accuracy
- consistency: 100 - 2 x population standard deviation, clamped to [0, 100]
- trend: mean of the recent half of sessions vs the earlier half
- concern level: high / medium / low from the thresholds in WeaknessPolicy

Topics are ranked by concern score, (100 - average accuracy) plus a penalty
for topics with few sessions. Sessions are ordered on a full record key
before scoring so the ranking is identical for any input order.

Usage:
    from src.domains.analytics.topics import WeaknessPolicy, rank_weak_topics

    policy = WeaknessPolicy.from_settings(settings.analytics)
    weak_topics = rank_weak_topics(revisions, policy)
"""

import logging
import re
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from src.core.config.settings import AnalyticsSettings
from src.domains.analytics.records import RevisionRecord

logger = logging.getLogger(__name__)

# Policy defaults
MIN_TOPIC_SESSIONS = 1
HIGH_CONCERN_ACCURACY = 50.0
TARGET_ACCURACY = 70.0
TREND_MARGIN = 5.0
LOW_CONSISTENCY_SCORE = 60.0
LOW_ATTEMPT_SESSIONS = 2
LOW_ATTEMPT_PENALTY = 20.0
CONSISTENCY_SCALE = 2.0

# Phrase shape
MAX_PHRASE_WORDS = 4
MIN_PHRASE_CHARS = 3

# Subject abbreviations kept despite their length
SHORT_TOPICS = frozenset(
    {"ai", "cd", "cn", "co", "db", "dm", "dp", "ds", "la", "ml", "os"}
)

# Words trimmed from either end of a candidate phrase
FILLER_WORDS = frozenset(
    {
        "a", "about", "again", "all", "also", "an", "any", "are", "as", "at",
        "bad", "be", "been", "bit", "by", "confused", "confusion", "did",
        "do", "doing", "done", "for", "from", "few", "got", "had", "has",
        "have", "i", "in", "is", "it", "its", "lot", "made", "many", "me",
        "mistake", "mistakes", "more", "most", "much", "my", "need", "needs",
        "not", "of", "on", "practice", "problem", "problems", "question",
        "questions", "revise", "revision", "silly", "so", "some", "still",
        "the", "this", "to", "topic", "topics", "very", "was", "weak",
        "were", "with", "wrong",
    }
)

_SEPARATORS = re.compile(r"[^\w\s+#'-]+|\n")
_CONNECTORS = re.compile(r"\s(?:and|or|but|then|&)\s")


class TopicTrend(str, Enum):
    """Direction of accuracy across a topic's sessions."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class ConcernLevel(str, Enum):
    """Severity of a weak topic."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class WeaknessPolicy:
    """Thresholds for topic scoring.

    Attributes:
        min_sessions: Sessions a topic needs to be analysed.
        high_concern_accuracy: Average accuracy below this is high concern.
        target_accuracy: Average accuracy below this is medium concern.
        trend_margin: Points the halves must differ by to count as a trend.
        low_consistency_score: Consistency below this escalates a decline.
        low_attempt_sessions: Topics with fewer sessions are penalised.
        low_attempt_penalty: Points added to the concern score when penalised.
        consistency_scale: Multiplier applied to the standard deviation.
    """

    min_sessions: int = MIN_TOPIC_SESSIONS
    high_concern_accuracy: float = HIGH_CONCERN_ACCURACY
    target_accuracy: float = TARGET_ACCURACY
    trend_margin: float = TREND_MARGIN
    low_consistency_score: float = LOW_CONSISTENCY_SCORE
    low_attempt_sessions: int = LOW_ATTEMPT_SESSIONS
    low_attempt_penalty: float = LOW_ATTEMPT_PENALTY
    consistency_scale: float = CONSISTENCY_SCALE

    @classmethod
    def from_settings(cls, settings: AnalyticsSettings) -> "WeaknessPolicy":
        return cls(
            min_sessions=settings.min_topic_sessions,
            high_concern_accuracy=settings.high_concern_accuracy,
            target_accuracy=settings.target_accuracy,
            trend_margin=settings.trend_margin,
            low_consistency_score=settings.low_consistency_score,
            low_attempt_sessions=settings.low_attempt_sessions,
            low_attempt_penalty=settings.low_attempt_penalty,
            consistency_scale=settings.consistency_scale,
        )


DEFAULT_POLICY = WeaknessPolicy()


@dataclass(frozen=True)
class TopicAnalysis:
    """Scored weak-topic candidate."""

    topic: str
    subject: str
    average_accuracy: float
    consistency_score: float
    trend: TopicTrend
    concern_level: ConcernLevel
    concern_score: float
    total_sessions: int
    total_questions: int
    total_correct: int
    last_practiced: str = ""
    insights: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "subject": self.subject,
            "average_accuracy": self.average_accuracy,
            "consistency_score": self.consistency_score,
            "trend": self.trend.value,
            "concern_level": self.concern_level.value,
            "concern_score": self.concern_score,
            "total_sessions": self.total_sessions,
            "total_questions": self.total_questions,
            "total_correct": self.total_correct,
            "last_practiced": self.last_practiced,
            "insights": list(self.insights),
        }


def _trim(words: list[str]) -> list[str]:
    start, end = 0, len(words)
    while start < end and words[start] in FILLER_WORDS:
        start += 1
    while end > start and words[end - 1] in FILLER_WORDS:
        end -= 1
    return words[start:end]


def extract_topics(text: str) -> list[str]:
    """Split free text into topic phrases.

    Text is lowercased and split on punctuation, line breaks and
    conjunctions; filler words are trimmed from both ends of each fragment.
    Phrases of 1 to MAX_PHRASE_WORDS words and at least MIN_PHRASE_CHARS
    characters are kept, as are subject abbreviations such as "dp"; each
    phrase appears once, in order of first appearance.

    Example:
        >>> extract_topics("Weak in Dynamic Programming, graphs and trees")
        ['dynamic programming', 'graphs', 'trees']
    """
    if not text:
        return []

    phrases: list[str] = []
    seen: set[str] = set()

    for chunk in _SEPARATORS.split(text.lower()):
        for fragment in _CONNECTORS.split(f" {chunk} "):
            words = _trim(fragment.split())
            if not words or len(words) > MAX_PHRASE_WORDS:
                continue
            phrase = " ".join(words).strip("'-")
            if phrase in seen:
                continue
            if len(phrase) < MIN_PHRASE_CHARS and phrase not in SHORT_TOPICS:
                continue
            seen.add(phrase)
            phrases.append(phrase)

    return phrases


def record_topics(record: RevisionRecord) -> list[str]:
    """Topic phrases of one session, from remarks then weak topics."""
    topics = extract_topics(record.remarks)
    for phrase in extract_topics(record.weak_topics):
        if phrase not in topics:
            topics.append(phrase)
    return topics


def session_order(record: RevisionRecord) -> tuple:
    """Total ordering of sessions: chronological, then by every field."""
    return (
        record.parsed_date or date.min,
        record.date,
        record.subject,
        record.type,
        record.num_questions,
        record.num_correct,
        record.time_spent_minutes,
        record.remarks,
        record.weak_topics,
        record.id,
    )


def _trend(accuracies: Sequence[float], margin: float) -> tuple[TopicTrend, float, float]:
    if len(accuracies) < 2:
        value = accuracies[0] if accuracies else 0.0
        return TopicTrend.STABLE, value, value

    half = len(accuracies) // 2
    earlier = statistics.fmean(accuracies[:half])
    recent = statistics.fmean(accuracies[half:])

    if recent - earlier > margin:
        return TopicTrend.IMPROVING, earlier, recent
    if earlier - recent > margin:
        return TopicTrend.DECLINING, earlier, recent
    return TopicTrend.STABLE, earlier, recent


def _concern(
    average: float,
    trend: TopicTrend,
    consistency: float,
    policy: WeaknessPolicy,
) -> ConcernLevel:
    if average < policy.high_concern_accuracy:
        return ConcernLevel.HIGH
    if trend is TopicTrend.DECLINING and consistency < policy.low_consistency_score:
        return ConcernLevel.HIGH
    if average < policy.target_accuracy or trend is TopicTrend.DECLINING:
        return ConcernLevel.MEDIUM
    return ConcernLevel.LOW


def score_topic(
    topic: str,
    subject: str,
    sessions: Sequence[RevisionRecord],
    policy: WeaknessPolicy = DEFAULT_POLICY,
) -> TopicAnalysis:
    """Score one topic from its sessions.

    Args:
        topic: Topic phrase.
        subject: Subject the sessions belong to.
        sessions: Sessions mentioning the topic, in any order.
        policy: Scoring thresholds.

    Returns:
        TopicAnalysis for the topic.
    """
    ordered = sorted(sessions, key=session_order)
    accuracies = [record.accuracy for record in ordered]

    average = statistics.fmean(accuracies) if accuracies else 0.0
    spread = statistics.pstdev(accuracies) if len(accuracies) > 1 else 0.0
    consistency = min(100.0, max(0.0, 100.0 - policy.consistency_scale * spread))
    trend, earlier, recent = _trend(accuracies, policy.trend_margin)
    concern = _concern(average, trend, consistency, policy)

    score = 100.0 - average
    if len(ordered) < policy.low_attempt_sessions:
        score += policy.low_attempt_penalty

    insights: list[str] = []
    if average < policy.high_concern_accuracy:
        insights.append(f"Average accuracy of {average:.0f}% is well below target")
    if trend is TopicTrend.DECLINING:
        insights.append(f"Accuracy dropped from {earlier:.0f}% to {recent:.0f}% recently")
    elif trend is TopicTrend.IMPROVING:
        insights.append(f"Accuracy improved from {earlier:.0f}% to {recent:.0f}% recently")
    if len(ordered) > 1 and consistency < policy.low_consistency_score:
        insights.append("Results vary a lot between sessions")
    if len(ordered) < policy.low_attempt_sessions:
        insights.append("Too few sessions to judge; practice this topic again")

    return TopicAnalysis(
        topic=topic,
        subject=subject,
        average_accuracy=average,
        consistency_score=consistency,
        trend=trend,
        concern_level=concern,
        concern_score=score,
        total_sessions=len(ordered),
        total_questions=sum(record.num_questions for record in ordered),
        total_correct=sum(record.num_correct for record in ordered),
        last_practiced=ordered[-1].date if ordered else "",
        insights=tuple(insights),
    )


def group_by_topic(
    records: Iterable[RevisionRecord],
) -> dict[tuple[str, str], list[RevisionRecord]]:
    """Map (subject, phrase) to the sessions mentioning the phrase.

    Sessions without attempted questions carry no accuracy and are ignored.
    """
    topics: dict[tuple[str, str], list[RevisionRecord]] = {}

    for record in records:
        if record.num_questions <= 0:
            continue
        for phrase in record_topics(record):
            topics.setdefault((record.subject, phrase), []).append(record)

    return topics


def analyze_topics(
    records: Iterable[RevisionRecord],
    policy: WeaknessPolicy = DEFAULT_POLICY,
) -> list[TopicAnalysis]:
    """Score every topic with enough sessions, most concerning first.

    Args:
        records: Revision records.
        policy: Scoring thresholds.

    Returns:
        TopicAnalysis list sorted by concern score descending, then topic
        phrase, then subject.
    """
    grouped = group_by_topic(records)

    analyses = [
        score_topic(phrase, subject, sessions, policy)
        for (subject, phrase), sessions in grouped.items()
        if len(sessions) >= policy.min_sessions
    ]
    analyses.sort(key=lambda item: (-item.concern_score, item.topic, item.subject))

    logger.debug(
        "Analysed topics: candidates=%d, retained=%d", len(grouped), len(analyses)
    )

    return analyses


def rank_weak_topics(
    records: Iterable[RevisionRecord],
    policy: WeaknessPolicy = DEFAULT_POLICY,
    limit: int | None = None,
) -> list[TopicAnalysis]:
    """Ranked topics with medium or high concern.

    Args:
        records: Revision records.
        policy: Scoring thresholds.
        limit: Maximum number of topics to return.

    Returns:
        Weak topics, most concerning first.
    """
    weak = [
        analysis
        for analysis in analyze_topics(records, policy)
        if analysis.concern_level is not ConcernLevel.LOW
    ]
    return weak if limit is None else weak[:limit]


def topic_sessions(
    records: Iterable[RevisionRecord],
    topic: str,
    subject: str | None = None,
) -> list[RevisionRecord]:
    """Sessions whose remarks or weak topics mention a phrase.

    Matching is a case-insensitive substring search. Most recent first.
    """
    needle = topic.strip().lower()
    if not needle:
        return []

    matches = [
        record
        for record in records
        if needle in record.topic_text.lower()
        and (subject is None or record.subject == subject)
    ]
    return sorted(matches, key=session_order, reverse=True)
