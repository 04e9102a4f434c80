# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Analytics service module.

This module connects the document store to the pure analytics pipeline:
documents are loaded, normalized, and handed to the aggregation, topic and
insight functions. Nothing is cached between calls; every request works on
the record set it just loaded.

Usage:
    from src.domains.analytics import AnalyticsService
    from src.infrastructure.database import FirestoreDocumentStore

    service = AnalyticsService(store=FirestoreDocumentStore())

    # Log a session
    await service.log_revision({"date": "2025-01-12", "subject": "Algorithms", ...})

    # Build the dashboard
    dashboard = await service.get_dashboard(mode="weekly", today=date(2025, 1, 12))
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from src.core.config.settings import AnalyticsSettings, get_settings
from src.domains.analytics.aggregator import (
    AggregatedGroup,
    OverallSummary,
    PeriodVolume,
    TimeEfficiency,
    average_questions_per_day,
    overall_summary,
    period_volume,
    progress_series,
    subject_analysis,
    time_efficiency,
    type_analysis,
)
from src.domains.analytics.bucketing import BucketMode
from src.domains.analytics.insights import revision_insights, series_insights
from src.domains.analytics.mock import (
    FlmtPoint,
    FlmtSummary,
    MockOverview,
    MockSubjectAggregate,
    WeakSubject,
    aggregate_mock_subjects,
    flmt_series,
    flmt_summary,
    identify_weak_subjects,
    mock_overview,
    mock_progress,
)
from src.domains.analytics.normalizer import (
    normalize_full_length_mock,
    normalize_full_length_mocks,
    normalize_mock_test,
    normalize_mock_tests,
    normalize_question,
    normalize_questions,
    normalize_revision,
    normalize_revisions,
    normalize_weak_topics,
)
from src.domains.analytics.records import (
    FullLengthMockRecord,
    MockTestRecord,
    QuestionRecord,
    RevisionRecord,
    WeakTopicEntry,
)
from src.domains.analytics.topics import TopicAnalysis, WeaknessPolicy, rank_weak_topics
from src.infrastructure.database.document_store import Collection, DatabaseError, DocumentStore
from src.utils.datetime import parse_record_date, utc_now, utc_today

logger = logging.getLogger(__name__)


class AnalyticsServiceError(Exception):
    """Base exception for analytics service errors."""

    pass


class DataLoadError(AnalyticsServiceError):
    """Raised when records cannot be loaded from the store."""

    pass


class DataSaveError(AnalyticsServiceError):
    """Raised when a record cannot be written to the store."""

    pass


class InvalidRecordError(AnalyticsServiceError):
    """Raised when a record to be logged is missing required values."""

    pass


@dataclass
class Dashboard:
    """Everything the analysis page renders."""

    mode: BucketMode
    overview: OverallSummary
    subjects: dict[str, AggregatedGroup]
    types: dict[str, AggregatedGroup]
    progress: list[AggregatedGroup]
    time_efficiency: list[TimeEfficiency]
    weekly_volume: list[PeriodVolume]
    monthly_volume: list[PeriodVolume]
    avg_questions_per_day: dict[str, float]
    weak_topics: list[TopicAnalysis]
    insights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "mode": self.mode.value,
            "overview": self.overview.to_dict(),
            "subjects": {key: group.to_dict() for key, group in self.subjects.items()},
            "types": {key: group.to_dict() for key, group in self.types.items()},
            "progress": [group.to_dict() for group in self.progress],
            "time_efficiency": [entry.to_dict() for entry in self.time_efficiency],
            "weekly_volume": [entry.to_dict() for entry in self.weekly_volume],
            "monthly_volume": [entry.to_dict() for entry in self.monthly_volume],
            "avg_questions_per_day": dict(self.avg_questions_per_day),
            "weak_topics": [topic.to_dict() for topic in self.weak_topics],
            "insights": list(self.insights),
        }


@dataclass
class MockAnalysis:
    """Sectional and full-length mock results."""

    overview: MockOverview
    subjects: list[MockSubjectAggregate]
    weak_subjects: list[WeakSubject]
    progress: list[AggregatedGroup]
    flmt: FlmtSummary
    flmt_marks: list[FlmtPoint]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "overview": self.overview.to_dict(),
            "subjects": [item.to_dict() for item in self.subjects],
            "weak_subjects": [item.to_dict() for item in self.weak_subjects],
            "progress": [group.to_dict() for group in self.progress],
            "flmt": self.flmt.to_dict(),
            "flmt_marks": [
                {"date": point.date, "test_name": point.test_name, "value": point.value}
                for point in self.flmt_marks
            ],
        }


class AnalyticsService:
    """Service for logging study records and building analytics.

    Attributes:
        _store: Document store collaborator.
        _settings: Analytics thresholds.

    Example:
        >>> service = AnalyticsService(store)
        >>> dashboard = await service.get_dashboard("monthly")
        >>> dashboard.overview.accuracy
        72.5
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: AnalyticsSettings | None = None,
    ) -> None:
        """Initialize the analytics service.

        Args:
            store: Document store to read and write records.
            settings: Analytics thresholds. Uses get_settings() if None.
        """
        self._store = store
        self._settings = settings or get_settings().analytics
        self._policy = WeaknessPolicy.from_settings(self._settings)

    @property
    def policy(self) -> WeaknessPolicy:
        """Weak-topic scoring thresholds in use."""
        return self._policy

    # =========================================================================
    # Logging
    # =========================================================================

    async def _insert(self, collection: Collection, document: dict[str, Any]) -> str:
        document["timestamp"] = utc_now()
        try:
            doc_id = await self._store.insert(collection, document)
        except DatabaseError as e:
            logger.error("Failed to save record: collection=%s, error=%s", collection.value, str(e))
            raise DataSaveError(f"Could not save to {collection.value}") from e

        logger.info("Record saved: collection=%s, id=%s", collection.value, doc_id)
        return doc_id

    @staticmethod
    def _require_date(record_date: str) -> None:
        if parse_record_date(record_date) is None:
            raise InvalidRecordError(f"Invalid date: {record_date!r}")

    async def log_revision(self, fields: Mapping[str, Any]) -> str:
        """Normalize and store a revision session.

        Args:
            fields: Raw form fields.

        Returns:
            The new document id.

        Raises:
            InvalidRecordError: If the date is missing or invalid.
            DataSaveError: If the store write fails.
        """
        record = normalize_revision(fields)
        self._require_date(record.date)
        return await self._insert(Collection.REVISIONS, record.to_dict())

    async def log_mock_test(self, fields: Mapping[str, Any]) -> str:
        """Normalize and store a sectional mock test."""
        record = normalize_mock_test(fields)
        self._require_date(record.date)
        return await self._insert(Collection.MOCK_TESTS, record.to_dict())

    async def log_full_length_mock(self, fields: Mapping[str, Any]) -> str:
        """Normalize and store a full-length mock result."""
        record = normalize_full_length_mock(fields)
        self._require_date(record.date)
        return await self._insert(Collection.FULL_LENGTH_MOCKS, record.to_dict())

    async def log_question(self, fields: Mapping[str, Any]) -> str:
        """Store a question saved for review.

        Raises:
            InvalidRecordError: If the question text is empty.
            DataSaveError: If the store write fails.
        """
        record = normalize_question(fields)
        if not record.question:
            raise InvalidRecordError("Question text is required")
        return await self._insert(Collection.QUESTIONS, record.to_dict())

    # =========================================================================
    # Loading
    # =========================================================================

    async def _load(
        self,
        collection: Collection,
        order_by: str | None = None,
    ) -> list[dict[str, Any]]:
        try:
            return await self._store.list_all(collection, order_by=order_by, direction="desc")
        except DatabaseError as e:
            logger.error(
                "Failed to load records: collection=%s, error=%s", collection.value, str(e)
            )
            raise DataLoadError(f"Could not load {collection.value}") from e

    async def load_revisions(self) -> list[RevisionRecord]:
        """All revision sessions, newest first as stored."""
        return normalize_revisions(await self._load(Collection.REVISIONS, order_by="date"))

    async def load_mock_tests(self) -> list[MockTestRecord]:
        """All sectional mock tests."""
        return normalize_mock_tests(await self._load(Collection.MOCK_TESTS, order_by="timestamp"))

    async def load_full_length_mocks(self) -> list[FullLengthMockRecord]:
        """All full-length mock results."""
        return normalize_full_length_mocks(
            await self._load(Collection.FULL_LENGTH_MOCKS, order_by="date")
        )

    async def load_questions(self) -> list[QuestionRecord]:
        """All saved questions."""
        return normalize_questions(await self._load(Collection.QUESTIONS, order_by="timestamp"))

    async def load_weak_topics(self) -> list[WeakTopicEntry]:
        """All manually recorded weak topics."""
        return normalize_weak_topics(await self._load(Collection.WEAK_TOPICS))

    # =========================================================================
    # Analytics
    # =========================================================================

    def build_dashboard(
        self,
        revisions: list[RevisionRecord],
        mode: BucketMode | str = BucketMode.WEEKLY,
        today: date | None = None,
    ) -> Dashboard:
        """Build the dashboard from already loaded revisions.

        Args:
            revisions: Normalized revision records.
            mode: Bucketing of the progress series (daily, weekly or monthly).
            today: Reference day. Defaults to the current UTC date.

        Returns:
            Dashboard for the records.

        Raises:
            ValueError: If mode is not a time bucketing mode.
        """
        mode = BucketMode(mode)
        today = today or utc_today()
        progress = progress_series(revisions, mode)

        insights = revision_insights(revisions, today)
        insights.extend(
            series_insights(
                progress,
                mode,
                improvement_threshold=self._settings.improvement_threshold,
                daily_target=self._settings.daily_question_target,
                gap_days_threshold=self._settings.gap_days_threshold,
            )
        )

        return Dashboard(
            mode=mode,
            overview=overall_summary(revisions),
            subjects=subject_analysis(revisions),
            types=type_analysis(revisions),
            progress=progress,
            time_efficiency=time_efficiency(revisions),
            weekly_volume=period_volume(revisions, BucketMode.WEEKLY, today),
            monthly_volume=period_volume(revisions, BucketMode.MONTHLY, today),
            avg_questions_per_day={
                window: average_questions_per_day(revisions, window, today)
                for window in ("week", "month", "all")
            },
            weak_topics=rank_weak_topics(
                revisions, self._policy, limit=self._settings.weak_topic_limit
            ),
            insights=insights,
        )

    async def get_dashboard(
        self,
        mode: BucketMode | str = BucketMode.WEEKLY,
        today: date | None = None,
    ) -> Dashboard:
        """Load revisions and build the dashboard.

        Raises:
            DataLoadError: If revisions cannot be loaded.
            ValueError: If mode is not a time bucketing mode.
        """
        revisions = await self.load_revisions()
        dashboard = self.build_dashboard(revisions, mode, today)

        logger.info(
            "Dashboard built: revisions=%d, mode=%s, weak_topics=%d",
            len(revisions),
            dashboard.mode.value,
            len(dashboard.weak_topics),
        )
        return dashboard

    async def get_mock_analysis(self) -> MockAnalysis:
        """Load mock tests and full-length mocks and analyse both.

        Raises:
            DataLoadError: If either collection cannot be loaded.
        """
        mocks, flmts = await asyncio.gather(
            self.load_mock_tests(),
            self.load_full_length_mocks(),
        )

        subjects = aggregate_mock_subjects(mocks)
        return MockAnalysis(
            overview=mock_overview(mocks),
            subjects=subjects,
            weak_subjects=identify_weak_subjects(
                subjects,
                accuracy_threshold=self._settings.mock_accuracy_threshold,
                min_attempts=self._settings.mock_min_attempts,
            ),
            progress=mock_progress(mocks),
            flmt=flmt_summary(flmts),
            flmt_marks=flmt_series(flmts),
        )

    async def get_weak_topic_board(self) -> dict[str, list[WeakTopicEntry]]:
        """Recorded weak topics grouped by subject.

        Subjects are sorted by name; within a subject open topics come
        before resolved ones.
        """
        entries = await self.load_weak_topics()

        board: dict[str, list[WeakTopicEntry]] = {}
        for entry in entries:
            board.setdefault(entry.subject, []).append(entry)

        return {
            subject: sorted(board[subject], key=lambda entry: (entry.is_resolved, entry.topic))
            for subject in sorted(board)
        }

    async def set_weak_topic_resolved(self, topic_id: str, resolved: bool) -> None:
        """Mark a recorded weak topic as resolved or open again.

        Raises:
            DataSaveError: If the store write fails.
        """
        try:
            await self._store.update(Collection.WEAK_TOPICS, topic_id, {"isResolved": resolved})
        except DatabaseError as e:
            logger.error("Failed to update weak topic: id=%s, error=%s", topic_id, str(e))
            raise DataSaveError(f"Could not update weak topic {topic_id}") from e

        logger.info("Weak topic updated: id=%s, resolved=%s", topic_id, resolved)
