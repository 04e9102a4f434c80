# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document store infrastructure.

Example:
    from src.infrastructure.database import Collection, FirestoreDocumentStore

    store = FirestoreDocumentStore(get_settings().firestore)
    revisions = await store.list_all(Collection.REVISIONS, order_by="date")
"""

from src.infrastructure.database.document_store import (
    Collection,
    DatabaseError,
    DocumentStore,
    FirestoreDocumentStore,
)

__all__ = [
    "Collection",
    "DatabaseError",
    "DocumentStore",
    "FirestoreDocumentStore",
]
