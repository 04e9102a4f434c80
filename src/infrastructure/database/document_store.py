# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document store access for logged study records.

Records are schemaless documents in a hosted Firestore database, one
collection per record kind. The analytics code only needs three
operations, expressed by the DocumentStore interface:

- insert a document and get its id back
- list every document of a collection, ordered by one field
- update fields of one document (resolving a stored weak topic)

FirestoreDocumentStore implements the interface with firebase_admin's async
Firestore client. No pagination, transactions or consistency guarantees are
assumed: a dashboard render loads the full collection into memory.

Example:
    from src.infrastructure.database import Collection, FirestoreDocumentStore

    store = FirestoreDocumentStore(settings.firestore)
    doc_id = await store.insert(Collection.REVISIONS, {"date": "2025-01-06", ...})
    docs = await store.list_all(Collection.REVISIONS, order_by="date")
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Literal, Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from google.cloud.firestore import Query

from src.core.config.settings import FirestoreSettings

logger = logging.getLogger(__name__)

SortDirection = Literal["asc", "desc"]


class Collection(str, Enum):
    """Collections used by the tracker."""

    REVISIONS = "revisions"
    FULL_LENGTH_MOCKS = "fmt"
    QUESTIONS = "questions"
    WEAK_TOPICS = "weak topics"
    MOCK_TESTS = "mockTest"


class DatabaseError(Exception):
    """Base exception for document store operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying client error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class DocumentStore(ABC):
    """Async document store interface consumed by the analytics service."""

    @abstractmethod
    async def insert(self, collection: str, fields: dict[str, Any]) -> str:
        """Insert a document and return its id."""

    @abstractmethod
    async def list_all(
        self,
        collection: str,
        order_by: str | None = None,
        direction: SortDirection = "desc",
    ) -> list[dict[str, Any]]:
        """List every document of a collection.

        Each returned mapping carries the document id under ``"id"``.
        """

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Update fields of an existing document."""


def _collection_name(collection: str) -> str:
    return collection.value if isinstance(collection, Collection) else collection


class FirestoreDocumentStore(DocumentStore):
    """DocumentStore backed by Firestore via firebase_admin.

    The firebase app is initialized lazily on first use and reused when an
    app with the configured name already exists.

    Attributes:
        settings: Firestore connection settings.
    """

    def __init__(
        self,
        settings: FirestoreSettings | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            settings: Firestore settings. Defaults are used if None.
            client: Pre-built async Firestore client (skips app initialization).
        """
        self.settings = settings or FirestoreSettings()
        self._client = client

    def _get_client(self) -> Any:
        """Get or create the async Firestore client."""
        if self._client is not None:
            return self._client

        try:
            app = firebase_admin.get_app(self.settings.app_name)
        except ValueError:
            if self.settings.credentials_path:
                cred = credentials.Certificate(self.settings.credentials_path)
            else:
                cred = credentials.ApplicationDefault()
            options = {"projectId": self.settings.project_id} if self.settings.project_id else None
            app = firebase_admin.initialize_app(cred, options, name=self.settings.app_name)
            logger.info("Firebase app initialized: name=%s", self.settings.app_name)

        self._client = firestore_async.client(app=app)
        return self._client

    async def insert(self, collection: str, fields: dict[str, Any]) -> str:
        """Insert a document and return its generated id.

        Raises:
            DatabaseError: If the write fails.
        """
        name = _collection_name(collection)
        try:
            _, doc_ref = await self._get_client().collection(name).add(fields)
        except Exception as e:
            logger.error("Insert failed: collection=%s, error=%s", name, str(e))
            raise DatabaseError(f"Failed to insert into '{name}'", e) from e

        logger.debug("Inserted document: collection=%s, id=%s", name, doc_ref.id)
        return doc_ref.id

    async def list_all(
        self,
        collection: str,
        order_by: str | None = None,
        direction: SortDirection = "desc",
    ) -> list[dict[str, Any]]:
        """List every document of a collection, optionally ordered.

        Raises:
            DatabaseError: If the query fails.
        """
        name = _collection_name(collection)
        query = self._get_client().collection(name)
        if order_by:
            query = query.order_by(
                order_by,
                direction=Query.DESCENDING if direction == "desc" else Query.ASCENDING,
            )

        try:
            documents = [
                {**(snapshot.to_dict() or {}), "id": snapshot.id}
                async for snapshot in query.stream()
            ]
        except Exception as e:
            logger.error("Query failed: collection=%s, error=%s", name, str(e))
            raise DatabaseError(f"Failed to list '{name}'", e) from e

        logger.debug("Listed documents: collection=%s, count=%d", name, len(documents))
        return documents

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Update fields of one document.

        Raises:
            DatabaseError: If the write fails.
        """
        name = _collection_name(collection)
        try:
            await self._get_client().collection(name).document(doc_id).update(fields)
        except Exception as e:
            logger.error(
                "Update failed: collection=%s, id=%s, error=%s", name, doc_id, str(e)
            )
            raise DatabaseError(f"Failed to update '{name}/{doc_id}'", e) from e
