# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Firestore document store.

A MagicMock stands in for the async Firestore client.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.cloud.firestore import Query

from src.core.config.settings import FirestoreSettings
from src.infrastructure.database.document_store import (
    Collection,
    DatabaseError,
    FirestoreDocumentStore,
)


def _snapshot(doc_id: str, data: dict | None) -> MagicMock:
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.to_dict.return_value = data
    return snapshot


async def _stream(snapshots: list[MagicMock]):
    for snapshot in snapshots:
        yield snapshot


@pytest.fixture
def client() -> MagicMock:
    """Fake async Firestore client with one collection reference."""
    fake = MagicMock()
    collection = fake.collection.return_value
    collection.order_by.return_value = collection
    collection.stream.side_effect = lambda: _stream(
        [_snapshot("a", {"date": "2025-01-08"}), _snapshot("b", None)]
    )
    return fake


class TestFirestoreDocumentStore:
    """Test cases for FirestoreDocumentStore."""

    @pytest.mark.asyncio
    async def test_insert_returns_id(self, client: MagicMock) -> None:
        """Test that add() is used and the new id returned."""
        doc_ref = MagicMock()
        doc_ref.id = "new-id"
        client.collection.return_value.add = AsyncMock(return_value=(None, doc_ref))
        store = FirestoreDocumentStore(client=client)

        doc_id = await store.insert(Collection.REVISIONS, {"subject": "Algorithms"})

        assert doc_id == "new-id"
        client.collection.assert_called_with("revisions")

    @pytest.mark.asyncio
    async def test_list_all_orders_and_adds_ids(self, client: MagicMock) -> None:
        """Test ordering and id injection."""
        store = FirestoreDocumentStore(client=client)

        documents = await store.list_all(Collection.REVISIONS, order_by="date")

        assert documents == [{"date": "2025-01-08", "id": "a"}, {"id": "b"}]
        client.collection.return_value.order_by.assert_called_once_with(
            "date", direction=Query.DESCENDING
        )

    @pytest.mark.asyncio
    async def test_list_all_ascending_and_unordered(self, client: MagicMock) -> None:
        """Test direction handling and plain string collection names."""
        store = FirestoreDocumentStore(client=client)

        await store.list_all("fmt", order_by="date", direction="asc")
        client.collection.return_value.order_by.assert_called_once_with(
            "date", direction=Query.ASCENDING
        )

        client.collection.return_value.order_by.reset_mock()
        await store.list_all(Collection.WEAK_TOPICS)
        client.collection.return_value.order_by.assert_not_called()
        client.collection.assert_called_with("weak topics")

    @pytest.mark.asyncio
    async def test_update(self, client: MagicMock) -> None:
        """Test field updates on one document."""
        document = client.collection.return_value.document.return_value
        document.update = AsyncMock()
        store = FirestoreDocumentStore(client=client)

        await store.update(Collection.WEAK_TOPICS, "w1", {"isResolved": True})

        client.collection.return_value.document.assert_called_once_with("w1")
        document.update.assert_awaited_once_with({"isResolved": True})

    @pytest.mark.asyncio
    async def test_client_errors_are_wrapped(self, client: MagicMock) -> None:
        """Test that client failures become DatabaseError."""
        failure = RuntimeError("permission denied")
        client.collection.return_value.add = AsyncMock(side_effect=failure)
        client.collection.return_value.stream.side_effect = failure
        store = FirestoreDocumentStore(client=client)

        with pytest.raises(DatabaseError) as exc_info:
            await store.insert(Collection.QUESTIONS, {})
        assert exc_info.value.original_error is failure
        assert "permission denied" in str(exc_info.value)

        with pytest.raises(DatabaseError):
            await store.list_all(Collection.QUESTIONS)


class TestClientInitialization:
    """Test cases for lazy firebase app setup."""

    def test_initializes_app_with_service_account(self) -> None:
        """Test a new app is created from a key file."""
        settings = FirestoreSettings(credentials_path="/keys/sa.json", project_id="gate-tracker")
        module = "src.infrastructure.database.document_store"

        with (
            patch(f"{module}.firebase_admin") as mock_admin,
            patch(f"{module}.credentials") as mock_credentials,
            patch(f"{module}.firestore_async") as mock_firestore,
        ):
            mock_admin.get_app.side_effect = ValueError("no app")
            store = FirestoreDocumentStore(settings)

            first = store._get_client()
            second = store._get_client()

        mock_credentials.Certificate.assert_called_once_with("/keys/sa.json")
        mock_admin.initialize_app.assert_called_once_with(
            mock_credentials.Certificate.return_value,
            {"projectId": "gate-tracker"},
            name="[DEFAULT]",
        )
        mock_firestore.client.assert_called_once_with(app=mock_admin.initialize_app.return_value)
        assert first is second

    def test_reuses_existing_app(self) -> None:
        """Test an already initialized app is reused."""
        module = "src.infrastructure.database.document_store"

        with (
            patch(f"{module}.firebase_admin") as mock_admin,
            patch(f"{module}.firestore_async") as mock_firestore,
        ):
            store = FirestoreDocumentStore(FirestoreSettings())
            store._get_client()

        mock_admin.initialize_app.assert_not_called()
        mock_firestore.client.assert_called_once_with(app=mock_admin.get_app.return_value)
