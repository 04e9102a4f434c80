# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across the unit tests:
- An in-memory document store standing in for Firestore
- Sample raw documents and normalized records
- Settings with defaults independent of the environment
"""

from datetime import date
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.core.config.settings import AnalyticsSettings, LLMSettings, clear_settings_cache
from src.core.intelligence.llm.client import LLMResponse
from src.domains.analytics.records import RevisionRecord
from src.infrastructure.database.document_store import DatabaseError, DocumentStore


# =============================================================================
# Fakes
# =============================================================================


class InMemoryDocumentStore(DocumentStore):
    """DocumentStore keeping collections in dictionaries.

    Set ``fail`` to make every operation raise DatabaseError.
    """

    def __init__(self, collections: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.collections: dict[str, list[dict[str, Any]]] = {
            name: [dict(document) for document in documents]
            for name, documents in (collections or {}).items()
        }
        self.fail = False
        self._counter = 0

    @staticmethod
    def _name(collection: str) -> str:
        return getattr(collection, "value", collection)

    def _check(self) -> None:
        if self.fail:
            raise DatabaseError("Store unavailable")

    async def insert(self, collection: str, fields: dict[str, Any]) -> str:
        self._check()
        self._counter += 1
        doc_id = f"doc-{self._counter}"
        self.collections.setdefault(self._name(collection), []).append({**fields, "id": doc_id})
        return doc_id

    async def list_all(
        self,
        collection: str,
        order_by: str | None = None,
        direction: str = "desc",
    ) -> list[dict[str, Any]]:
        self._check()
        stored = self.collections.get(self._name(collection), [])
        documents = [dict(document) for document in stored]
        if order_by:
            documents.sort(
                key=lambda document: str(document.get(order_by, "")),
                reverse=direction == "desc",
            )
        return documents

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self._check()
        for document in self.collections.get(self._name(collection), []):
            if document.get("id") == doc_id:
                document.update(fields)
                return
        raise DatabaseError(f"No document {doc_id}")


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clear cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    """Provide analytics settings with default thresholds."""
    return AnalyticsSettings()


@pytest.fixture
def llm_settings() -> LLMSettings:
    """Provide LLM settings without an API key."""
    return LLMSettings(GOOGLE_API_KEY=None)


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Provide an empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def mock_llm() -> AsyncMock:
    """Provide a mocked LLM client answering "ok"."""
    llm = AsyncMock()
    llm.complete = AsyncMock(
        return_value=LLMResponse(content="ok", model="gemini/gemini-2.5-flash")
    )
    return llm


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def today() -> date:
    """Provide a fixed reference day (a Sunday)."""
    return date(2025, 1, 12)


@pytest.fixture
def revision_documents() -> list[dict[str, Any]]:
    """Provide raw revision documents as stored."""
    return [
        {
            "id": "r1",
            "date": "2025-01-06",
            "subject": "Algorithms",
            "type": "DPP",
            "numQuestions": 10,
            "numCorrect": 8,
            "timeSpentMinutes": 30,
            "remarks": "Dynamic programming went well",
        },
        {
            "id": "r2",
            "date": "2025-01-08",
            "subject": "Algorithms",
            "type": "PYQ",
            "numQuestions": 20,
            "numCorrect": 10,
            "timeSpentMinutes": 60,
            "remarks": "Graphs, dynamic programming",
        },
        {
            "id": "r3",
            "date": "2025-01-12",
            "subject": "Databases",
            "type": "DPP",
            "numQuestions": 15,
            "numCorrect": 6,
            "timeSpentMinutes": 45,
            "weakTopics": "Normalization",
        },
    ]


@pytest.fixture
def revisions() -> list[RevisionRecord]:
    """Provide normalized revision records."""
    return [
        RevisionRecord(
            date="2025-01-06",
            subject="Algorithms",
            type="DPP",
            num_questions=10,
            num_correct=8,
            time_spent_minutes=30,
            remarks="Dynamic programming went well",
            id="r1",
        ),
        RevisionRecord(
            date="2025-01-08",
            subject="Algorithms",
            type="PYQ",
            num_questions=20,
            num_correct=10,
            time_spent_minutes=60,
            remarks="Graphs, dynamic programming",
            id="r2",
        ),
        RevisionRecord(
            date="2025-01-12",
            subject="Databases",
            type="DPP",
            num_questions=15,
            num_correct=6,
            time_spent_minutes=45,
            weak_topics="Normalization",
            id="r3",
        ),
    ]


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
