# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Study analytics domain.

Raw documents flow one way through pure stages:
- normalizer: schemaless documents -> typed records
- bucketing: records -> subject, type, day, ISO week or month buckets
- aggregator: buckets -> totals, accuracy, efficiency, daily volume
- topics: remarks -> scored and ranked weak topics
- insights: series and records -> human-readable observations

AnalyticsService loads documents from the store and runs the pipeline;
the assistants answer questions over its results.

Usage:
    from src.domains.analytics import AnalyticsService

    service = AnalyticsService(store)
    dashboard = await service.get_dashboard(mode="weekly")

    # Pure pipeline
    from src.domains.analytics import aggregate_by, normalize_revisions

    groups = aggregate_by(normalize_revisions(documents), "by-subject")
"""

from src.domains.analytics.aggregator import (
    AggregatedGroup,
    OverallSummary,
    PeriodVolume,
    TimeEfficiency,
    TimeWindow,
    aggregate_by,
    aggregate_group,
    average_questions_per_day,
    overall_summary,
    period_volume,
    progress_series,
    subject_analysis,
    time_efficiency,
    type_analysis,
)
from src.domains.analytics.assistant import (
    DetailViewAssistant,
    PerformanceAnalyst,
    SearchIntent,
    parse_intent,
)
from src.domains.analytics.bucketing import BucketMode, bucket_key, group_records
from src.domains.analytics.export import export_filename, questions_to_csv, revisions_to_csv
from src.domains.analytics.filters import Period, RecordFilter, filter_questions, filter_revisions
from src.domains.analytics.insights import revision_insights, series_insights
from src.domains.analytics.mock import (
    aggregate_mock_subjects,
    flmt_series,
    flmt_summary,
    identify_weak_subjects,
    mock_overview,
    mock_progress,
)
from src.domains.analytics.normalizer import (
    normalize_full_length_mocks,
    normalize_mock_tests,
    normalize_questions,
    normalize_revisions,
    normalize_weak_topics,
)
from src.domains.analytics.records import (
    FullLengthMockRecord,
    MockTestRecord,
    QuestionRecord,
    RevisionRecord,
    SubjectDetail,
    WeakTopicEntry,
)
from src.domains.analytics.service import (
    AnalyticsService,
    AnalyticsServiceError,
    Dashboard,
    DataLoadError,
    DataSaveError,
    InvalidRecordError,
    MockAnalysis,
)
from src.domains.analytics.topics import (
    ConcernLevel,
    TopicAnalysis,
    TopicTrend,
    WeaknessPolicy,
    analyze_topics,
    rank_weak_topics,
    topic_sessions,
)

__all__ = [
    # Records
    "FullLengthMockRecord",
    "MockTestRecord",
    "QuestionRecord",
    "RevisionRecord",
    "SubjectDetail",
    "WeakTopicEntry",
    # Normalization
    "normalize_full_length_mocks",
    "normalize_mock_tests",
    "normalize_questions",
    "normalize_revisions",
    "normalize_weak_topics",
    # Bucketing and aggregation
    "AggregatedGroup",
    "BucketMode",
    "OverallSummary",
    "PeriodVolume",
    "TimeEfficiency",
    "TimeWindow",
    "aggregate_by",
    "aggregate_group",
    "average_questions_per_day",
    "bucket_key",
    "group_records",
    "overall_summary",
    "period_volume",
    "progress_series",
    "subject_analysis",
    "time_efficiency",
    "type_analysis",
    # Topics and insights
    "ConcernLevel",
    "TopicAnalysis",
    "TopicTrend",
    "WeaknessPolicy",
    "analyze_topics",
    "rank_weak_topics",
    "revision_insights",
    "series_insights",
    "topic_sessions",
    # Mock tests
    "aggregate_mock_subjects",
    "flmt_series",
    "flmt_summary",
    "identify_weak_subjects",
    "mock_overview",
    "mock_progress",
    # Filtering and export
    "Period",
    "RecordFilter",
    "export_filename",
    "filter_questions",
    "filter_revisions",
    "questions_to_csv",
    "revisions_to_csv",
    # Service
    "AnalyticsService",
    "AnalyticsServiceError",
    "Dashboard",
    "DataLoadError",
    "DataSaveError",
    "InvalidRecordError",
    "MockAnalysis",
    # Assistants
    "DetailViewAssistant",
    "PerformanceAnalyst",
    "SearchIntent",
    "parse_intent",
]
