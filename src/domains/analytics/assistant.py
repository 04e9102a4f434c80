# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Chat assistants over the analytics results.

Two assistants answer free-form questions through the LLM client:

- PerformanceAnalyst: answers from a compact dashboard summary (overview,
  subjects and the top five weak topics).
- DetailViewAssistant: first asks the model for a JSON search intent,
  filters the revisions locally, then answers from at most 30 session
  summaries.

Neither sends the raw record set to the model. A truncated reply or a
provider rejection becomes a friendly reply string; any other LLM failure
propagates to the caller.
"""

import json
import logging
import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.core.config.settings import LLMSettings, get_settings
from src.core.intelligence.llm.client import ChatRejectedError, LLMClient, TruncatedOutputError
from src.domains.analytics.aggregator import aggregate_group
from src.domains.analytics.filters import RecordFilter, filter_revisions
from src.domains.analytics.records import SUBJECTS, RevisionRecord
from src.domains.analytics.service import Dashboard
from src.domains.analytics.topics import session_order
from src.utils.datetime import parse_record_date, utc_today

logger = logging.getLogger(__name__)

TOO_LONG_REPLY = "The response was too long. Please ask a more specific question!"
REJECTED_REPLY = "I couldn't process that question. Please rephrase it."
NO_MATCH_REPLY = (
    "I couldn't find any revision sessions matching your criteria. "
    "Try asking about a different subject, date range, or topic!"
)

ANALYST_SYSTEM_PROMPT = (
    "You are a GATE CSE performance analyst. Provide concise, actionable insights "
    "based on student data. Keep responses under 150 words."
)

DETAIL_SYSTEM_PROMPT = (
    "You are a GATE CSE performance analyst. Answer the user's question based on "
    "their filtered revision data."
)

INTENT_PROMPT = """You are a search assistant. Extract key information from this question to filter revision data.

Today is {today}.

User Question: "{question}"

Extract and return ONLY a JSON object with these fields (no markdown, no explanation):
{{
  "subjects": ["subject1", "subject2"],
  "types": ["type1"],
  "topics": ["topic1"],
  "dateRange": {{
    "start": "YYYY-MM-DD or null",
    "end": "YYYY-MM-DD or null"
  }},
  "minAccuracy": number or null,
  "maxAccuracy": number or null
}}

Available subjects: {subjects}

If the user mentions "last week", calculate dates. If "September", use that month.
If no filter is needed, return empty arrays and nulls."""

MAX_SUMMARY_SESSIONS = 30
MAX_REMARKS_CHARS = 100
TOP_WEAK_TOPICS = 5

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class DateRange(BaseModel):
    """Inclusive date bounds extracted from a question."""

    start: date | None = None
    end: date | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_day(cls, value: Any) -> date | None:
        return parse_record_date(value)


class SearchIntent(BaseModel):
    """Filter criteria the model extracted from a question."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    subjects: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    date_range: DateRange = Field(default_factory=DateRange, alias="dateRange")
    min_accuracy: float | None = Field(default=None, alias="minAccuracy")
    max_accuracy: float | None = Field(default=None, alias="maxAccuracy")

    @field_validator("subjects", "types", "topics", mode="before")
    @classmethod
    def _text_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @field_validator("date_range", mode="before")
    @classmethod
    def _range(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    def to_filter(self) -> RecordFilter:
        return RecordFilter(
            subjects=tuple(self.subjects),
            types=tuple(self.types),
            topics=tuple(self.topics),
            start_date=self.date_range.start,
            end_date=self.date_range.end,
            min_accuracy=self.min_accuracy,
            max_accuracy=self.max_accuracy,
        )


def parse_intent(text: str) -> SearchIntent:
    """Parse the model's intent reply, falling back to an empty intent.

    Markdown code fences around the JSON are removed first.
    """
    cleaned = text.strip()

    match = _FENCED_JSON.search(cleaned)
    if match:
        cleaned = match.group(1).strip()

    match = _JSON_OBJECT.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        return SearchIntent.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        logger.warning("Failed to parse search intent: error=%s", str(e))
        return SearchIntent()


def performance_summary(dashboard: Dashboard) -> dict[str, Any]:
    """Compact dashboard summary sent to the model."""
    overview = dashboard.overview
    return {
        "overview": {
            "revisions": overview.total_revisions,
            "questions": overview.total_questions,
            "accuracy": f"{overview.accuracy:.1f}%",
            "avgPerDay": round(dashboard.avg_questions_per_day.get("all", 0.0)),
        },
        "subjects": [
            {
                "name": name,
                "accuracy": f"{round(group.accuracy)}%",
                "questions": group.total_questions,
            }
            for name, group in dashboard.subjects.items()
        ],
        "weakTopics": [
            {
                "topic": topic.topic,
                "subject": topic.subject,
                "accuracy": f"{round(topic.average_accuracy)}%",
                "concern": topic.concern_level.value,
            }
            for topic in dashboard.weak_topics[:TOP_WEAK_TOPICS]
        ],
    }


def session_summaries(revisions: list[RevisionRecord]) -> list[dict[str, Any]]:
    """The most recent sessions, bounded in count and remark length."""
    latest = sorted(revisions, key=session_order, reverse=True)[:MAX_SUMMARY_SESSIONS]
    return [
        {
            "date": record.date,
            "subject": record.subject,
            "type": record.type,
            "questions": record.num_questions,
            "correct": record.num_correct,
            "accuracy": round(record.accuracy),
            "time": record.time_spent_minutes,
            "remarks": record.remarks[:MAX_REMARKS_CHARS],
        }
        for record in latest
    ]


class PerformanceAnalyst:
    """Answers questions about overall preparation from the dashboard.

    Example:
        >>> analyst = PerformanceAnalyst(LLMClient())
        >>> reply = await analyst.ask("Which subject should I focus on?", dashboard)
    """

    def __init__(
        self,
        llm: LLMClient,
        llm_settings: LLMSettings | None = None,
    ) -> None:
        self._llm = llm
        self._settings = llm_settings or get_settings().llm

    async def ask(self, question: str, dashboard: Dashboard) -> str:
        """Answer a question.

        Raises:
            ValueError: If the question is empty.
            LLMError: If the model call fails other than by truncation or
                rejection.
        """
        if not question or not question.strip():
            raise ValueError("Question cannot be empty")

        prompt = (
            f"Student Data: {json.dumps(performance_summary(dashboard))}\n\n"
            f"Question: {question.strip()}\n\n"
            "Provide a brief, helpful response:"
        )

        try:
            response = await self._llm.complete(
                prompt,
                max_tokens=self._settings.max_output_tokens,
                system_prompt=ANALYST_SYSTEM_PROMPT,
            )
        except TruncatedOutputError:
            return TOO_LONG_REPLY
        except ChatRejectedError:
            return REJECTED_REPLY

        return response.content


class DetailViewAssistant:
    """Answers questions about specific revision sessions.

    The question is turned into a SearchIntent, revisions are filtered
    locally, and only the matching sessions are summarized for the model.
    """

    def __init__(
        self,
        llm: LLMClient,
        llm_settings: LLMSettings | None = None,
    ) -> None:
        self._llm = llm
        self._settings = llm_settings or get_settings().llm

    async def extract_intent(self, question: str, today: date) -> SearchIntent:
        """Ask the model for filter criteria.

        Raises:
            TruncatedOutputError: If the intent reply was cut off empty.
            ChatRejectedError: If the provider declined.
            LLMError: If the model call fails.
        """
        prompt = INTENT_PROMPT.format(
            today=today.isoformat(),
            question=question,
            subjects=", ".join(SUBJECTS),
        )
        response = await self._llm.complete(
            prompt,
            max_tokens=self._settings.intent_max_output_tokens,
        )
        return parse_intent(response.content)

    async def ask(
        self,
        question: str,
        revisions: list[RevisionRecord],
        today: date | None = None,
    ) -> str:
        """Answer a question about the given revisions.

        Raises:
            ValueError: If the question is empty.
            LLMError: If a model call fails other than by truncation or
                rejection.
        """
        if not question or not question.strip():
            raise ValueError("Question cannot be empty")
        question = question.strip()
        today = today or utc_today()

        try:
            intent = await self.extract_intent(question, today)
            matched = filter_revisions(revisions, intent.to_filter(), today)
            logger.debug("Filtered revisions: matched=%d, total=%d", len(matched), len(revisions))

            if not matched:
                return NO_MATCH_REPLY

            totals = aggregate_group("matched", matched)
            total_time = sum(record.time_spent_minutes for record in matched)
            prompt = (
                f'User Question: "{question}"\n\n'
                "Filtered Data Summary:\n"
                f"- Total Sessions: {len(matched)}\n"
                f"- Total Questions: {totals.total_questions}\n"
                f"- Total Correct: {totals.total_correct}\n"
                f"- Average Accuracy: {round(totals.accuracy)}%\n"
                f"- Total Time Spent: {total_time:g} minutes\n\n"
                f"Recent Sessions (up to {MAX_SUMMARY_SESSIONS}):\n"
                f"{json.dumps(session_summaries(matched), indent=2)}\n\n"
                "Provide a detailed, helpful answer addressing their specific question. "
                "Include numbers, dates, and specific insights. Keep it under 200 words."
            )

            response = await self._llm.complete(
                prompt,
                max_tokens=self._settings.max_output_tokens,
                system_prompt=DETAIL_SYSTEM_PROMPT,
            )
        except TruncatedOutputError:
            return TOO_LONG_REPLY
        except ChatRejectedError:
            return REJECTED_REPLY

        return response.content
