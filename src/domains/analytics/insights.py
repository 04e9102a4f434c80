# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Insight generation.

Rule-based, human-readable observations. Every rule is independent; when no
rule fires the result is an empty list.

- series_insights: rules over an ascending time-bucketed progress series
- revision_insights: dashboard highlights over the raw revision set
"""

import logging
import math
from collections.abc import Sequence
from datetime import date, timedelta

from src.domains.analytics.aggregator import AggregatedGroup, aggregate_group, subject_analysis
from src.domains.analytics.bucketing import BucketMode, bucket_label
from src.domains.analytics.records import RevisionRecord
from src.utils.datetime import (
    days_between,
    days_in_month,
    parse_record_date,
    parse_week_key,
    week_bounds,
)

logger = logging.getLogger(__name__)

IMPROVEMENT_THRESHOLD = 5.0
DAILY_QUESTION_TARGET = 30.0
GAP_DAYS_THRESHOLD = 3

QUESTION_MILESTONE = 1000
RECENT_ACCURACY_MARGIN = 5.0
PACE_SESSIONS = 7
PACE_HORIZON_DAYS = 30
SUBJECT_GAP_THRESHOLD = 20.0
MAX_REVISION_INSIGHTS = 4


def _bucket_span(key: str, mode: BucketMode) -> tuple[date, date] | None:
    """First and last calendar day covered by a time bucket."""
    if mode is BucketMode.DAILY:
        day = parse_record_date(key)
        return (day, day) if day else None

    if mode is BucketMode.WEEKLY:
        parts = parse_week_key(key)
        if parts is None:
            return None
        try:
            return week_bounds(*parts)
        except ValueError:
            return None

    first = parse_record_date(f"{key}-01")
    if first is None:
        return None
    return first, first.replace(day=days_in_month(first.year, first.month))


def series_insights(
    series: Sequence[AggregatedGroup],
    mode: BucketMode | str,
    improvement_threshold: float = IMPROVEMENT_THRESHOLD,
    daily_target: float = DAILY_QUESTION_TARGET,
    gap_days_threshold: int = GAP_DAYS_THRESHOLD,
) -> list[str]:
    """Observations over a progress series.

    Args:
        series: Time buckets ordered ascending by key.
        mode: Bucketing mode of the series (daily, weekly or monthly).
        improvement_threshold: Accuracy change between the last two buckets
            worth reporting, in points.
        daily_target: Average questions per day below which volume is low.
        gap_days_threshold: Days without sessions that count as a long gap.

    Returns:
        Insight strings, possibly empty.

    Raises:
        ValueError: If mode is not a time bucketing mode.
    """
    mode = BucketMode(mode)
    if not mode.is_time_based:
        raise ValueError(f"{mode.value} is not a time bucketing mode")

    insights: list[str] = []
    if not series:
        return insights

    # Accuracy movement between the two latest buckets
    if len(series) >= 2:
        previous, latest = series[-2], series[-1]
        change = latest.accuracy - previous.accuracy
        label = bucket_label(latest.key, mode)
        if change > improvement_threshold:
            insights.append(
                f"Accuracy is improving: {latest.accuracy:.1f}% in {label}, "
                f"up from {previous.accuracy:.1f}%"
            )
        elif change < -improvement_threshold:
            insights.append(
                f"Accuracy is declining: {latest.accuracy:.1f}% in {label}, "
                f"down from {previous.accuracy:.1f}%"
            )

    spans = [(group, _bucket_span(group.key, mode)) for group in series]
    spans = [(group, span) for group, span in spans if span is not None]
    if not spans:
        return insights

    # Daily volume over the whole covered range
    first_day = spans[0][1][0]
    last_day = spans[-1][1][1]
    covered_days = (last_day - first_day).days + 1
    total_questions = sum(group.total_questions for group, _ in spans)
    average = total_questions / covered_days if covered_days > 0 else 0.0
    if average < daily_target:
        insights.append(
            f"Daily volume is low: {average:.1f} questions/day against a target of "
            f"{daily_target:.0f}"
        )

    # Longest stretch between buckets with sessions
    longest = 0
    gap_start: date | None = None
    for (_, (_, prev_end)), (_, (next_start, _)) in zip(spans, spans[1:]):
        gap = (next_start - prev_end).days - 1
        if gap > longest:
            longest = gap
            gap_start = prev_end + timedelta(days=1)
    if longest >= gap_days_threshold and gap_start is not None:
        insights.append(
            f"Long break: no sessions for {longest} days starting {gap_start.isoformat()}"
        )

    return insights


def _window(
    records: Sequence[tuple[date, RevisionRecord]],
    start: date,
    end: date,
) -> list[RevisionRecord]:
    """Records dated in [start, end]."""
    return [record for day, record in records if start <= day <= end]


def revision_insights(
    records: Sequence[RevisionRecord],
    today: date,
    limit: int = MAX_REVISION_INSIGHTS,
) -> list[str]:
    """Dashboard highlights: milestones, recent accuracy, pace, subject gap.

    Args:
        records: Revision records.
        today: Reference day for the trailing windows.
        limit: Maximum insights returned.

    Returns:
        Up to ``limit`` insight strings.
    """
    if not records:
        return []

    insights: list[str] = []
    dated = sorted(
        ((record.parsed_date, record) for record in records if record.parsed_date is not None),
        key=lambda item: item[0],
    )
    overall = aggregate_group("all", records)

    # Question milestones
    if dated and overall.total_questions >= QUESTION_MILESTONE:
        running = 0
        milestones: list[date] = []
        for day, record in dated:
            running += record.num_questions
            while running >= QUESTION_MILESTONE * (len(milestones) + 1) and len(milestones) < 2:
                milestones.append(day)
            if len(milestones) == 2:
                break

        start = dated[0][0]
        if len(milestones) == 2:
            insights.append(
                f"You reached your first {QUESTION_MILESTONE} questions in "
                f"{days_between(start, milestones[0])} days, the next {QUESTION_MILESTONE} "
                f"in {days_between(milestones[0], milestones[1])} days!"
            )
        elif milestones:
            insights.append(
                f"Great milestone! You reached {QUESTION_MILESTONE} questions in "
                f"{days_between(start, milestones[0])} days."
            )

    # Last week against overall accuracy
    week = aggregate_group("week", _window(dated, today - timedelta(days=7), today))
    if week.total_questions > 0:
        if week.accuracy > overall.accuracy + RECENT_ACCURACY_MARGIN:
            insights.append(
                f"Excellent! Last week's accuracy ({week.accuracy:.1f}%) was significantly "
                f"higher than your overall ({overall.accuracy:.1f}%)."
            )
        elif week.accuracy < overall.accuracy - RECENT_ACCURACY_MARGIN:
            insights.append(
                f"Last week's accuracy ({week.accuracy:.1f}%) was lower than your overall "
                f"({overall.accuracy:.1f}%). Keep pushing!"
            )

    # This month against the month before, as daily averages over 30 days
    month_start = today - timedelta(days=30)
    this_month = _window(dated, month_start, today)
    previous_month = _window(dated, today - timedelta(days=60), month_start - timedelta(days=1))
    if this_month:
        this_avg = sum(record.num_questions for record in this_month) / 30
        if previous_month:
            last_avg = sum(record.num_questions for record in previous_month) / 30
            if this_avg > last_avg:
                insights.append(
                    f"This month you averaged {this_avg:.0f} questions/day, compared to "
                    f"{last_avg:.0f}/day last month!"
                )
        else:
            insights.append(f"This month you're averaging {this_avg:.0f} questions per day.")

    # Pace to the next thousand, from the latest sessions
    if len(dated) >= PACE_SESSIONS:
        latest = dated[-PACE_SESSIONS:]
        recent_avg = sum(record.num_questions for _, record in latest) / PACE_SESSIONS
        target = math.ceil(overall.total_questions / QUESTION_MILESTONE) * QUESTION_MILESTONE
        if recent_avg > 0 and overall.total_questions < target:
            days_needed = math.ceil((target - overall.total_questions) / recent_avg)
            if days_needed <= PACE_HORIZON_DAYS:
                insights.append(
                    f"At this pace, you'll cross {target} questions in {days_needed} days!"
                )

    # Strongest against weakest subject
    subjects = sorted(subject_analysis(records).values(), key=lambda group: group.key)
    if len(subjects) > 1:
        best = max(subjects, key=lambda group: group.accuracy)
        weakest = min(subjects, key=lambda group: group.accuracy)
        if best.accuracy - weakest.accuracy > SUBJECT_GAP_THRESHOLD:
            insights.append(
                f"Your strongest subject is {best.key} ({best.accuracy:.1f}% accuracy), "
                f"focus more on {weakest.key} ({weakest.accuracy:.1f}%)."
            )

    logger.debug("Generated revision insights: count=%d", len(insights))

    return insights[:limit]
