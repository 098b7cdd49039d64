"""In-process record store.

Keeps every collection in a dict in insertion order. Used for dry runs and
tests; data is deep-copied in and out so callers can't mutate stored state.
"""

from __future__ import annotations

import copy
import logging
import uuid
from typing import Any

from seatwatch.common.exceptions import (
    DocumentNotFoundError,
    DocumentWriteError,
)
from seatwatch.store.base import DocumentRef, DocumentSnapshot, RecordStore

logger = logging.getLogger(__name__)


class MemoryRecordStore(RecordStore):
    """RecordStore backed by nested dicts."""

    def __init__(
        self, initial: dict[str, dict[str, dict[str, Any]]] | None = None
    ) -> None:
        """Initialize the store.

        Args:
            initial: Optional ``{collection: {doc_id: fields}}`` seed data.
        """
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, documents in (initial or {}).items():
            for doc_id, fields in documents.items():
                self.put(DocumentRef(collection, doc_id), fields)

    def put(self, ref: DocumentRef, fields: dict[str, Any]) -> None:
        """Create or replace a document under a known id."""
        self._collections.setdefault(ref.collection, {})[ref.id] = (
            copy.deepcopy(fields)
        )

    def find_by_equality(
        self,
        collection: str,
        field: str,
        value: Any,
        *more: tuple[str, Any],
    ) -> list[DocumentSnapshot]:
        conditions = [(field, value), *more]
        return [
            DocumentSnapshot(
                DocumentRef(collection, doc_id), copy.deepcopy(data)
            )
            for doc_id, data in self._collections.get(collection, {}).items()
            if all(
                name in data and data[name] == expected
                for name, expected in conditions
            )
        ]

    def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        documents = self._collections.get(collection, {})
        if doc_id not in documents:
            raise DocumentNotFoundError(collection, doc_id)
        return DocumentSnapshot(
            DocumentRef(collection, doc_id), copy.deepcopy(documents[doc_id])
        )

    def set_merge(self, ref: DocumentRef, fields: dict[str, Any]) -> None:
        documents = self._collections.get(ref.collection, {})
        if ref.id not in documents:
            raise DocumentWriteError(
                "document does not exist", "set_merge", ref.collection, ref.id
            )
        documents[ref.id].update(copy.deepcopy(fields))

    def add(self, collection: str, fields: dict[str, Any]) -> DocumentRef:
        ref = DocumentRef(collection, uuid.uuid4().hex[:20])
        self.put(ref, fields)
        logger.debug(f"Added {ref.path}")
        return ref

    def delete(self, ref: DocumentRef) -> None:
        self._collections.get(ref.collection, {}).pop(ref.id, None)

    def collection(self, name: str) -> dict[str, dict[str, Any]]:
        """Return a copy of every document in a collection, keyed by id."""
        return copy.deepcopy(self._collections.get(name, {}))
