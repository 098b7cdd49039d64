"""Record store contract.

The migrator and the user lookups talk to a schemaless document database
through this small surface: equality queries, get by id, shallow merge, add
and delete. Documents are plain dicts; typed access goes through
DocumentSnapshot.decode() so shape mismatches surface as DataShapeError at
the store boundary.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TypeVar

from seatwatch.common.data_models import StoredData

USERS = "users"
SECTIONS_TRACKED = "sections_tracked"
SECTIONS_ARCHIVE = "sections_archive"

M = TypeVar("M", bound=StoredData)


@dataclass(frozen=True)
class DocumentRef:
    """Address of one document: its collection and id."""

    collection: str
    id: str

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document's data as read at one point in time."""

    ref: DocumentRef
    _data: dict[str, Any] = field(repr=False)

    @property
    def id(self) -> str:
        return self.ref.id

    @property
    def data(self) -> dict[str, Any]:
        """A copy of the document's fields."""
        return copy.deepcopy(self._data)

    def decode(self, model: type[M]) -> M:
        """Validate the document against a model.

        Raises:
            DataShapeError: If the data doesn't fit the model.
        """
        return model.raw(source=self.ref.path, **self._data).confirm()


class RecordStore(ABC):
    """Capabilities the core needs from a document database.

    No atomicity is promised across calls unless the store overrides
    transaction(). Implementations raise DocumentReadError for failed reads
    and DocumentWriteError for failed writes.
    """

    @abstractmethod
    def find_by_equality(
        self,
        collection: str,
        field: str,
        value: Any,
        *more: tuple[str, Any],
    ) -> list[DocumentSnapshot]:
        """Return documents where every given field equals its value.

        Args:
            collection: Collection to search.
            field: First field to compare.
            value: Value the first field must equal.
            *more: Further (field, value) pairs, combined with AND.

        Returns:
            Matching snapshots in store order (oldest first).
        """

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        """Return one document by id.

        Raises:
            DocumentNotFoundError: If the document doesn't exist.
        """

    @abstractmethod
    def set_merge(self, ref: DocumentRef, fields: dict[str, Any]) -> None:
        """Shallow-merge fields into an existing document.

        Top-level fields not named in ``fields`` are left untouched.
        """

    @abstractmethod
    def add(self, collection: str, fields: dict[str, Any]) -> DocumentRef:
        """Create a document with a generated id and return its ref."""

    @abstractmethod
    def delete(self, ref: DocumentRef) -> None:
        """Remove a document."""

    @contextmanager
    def transaction(self) -> Iterator[RecordStore]:
        """Group calls so they commit or fail together, if supported.

        The default has no transactional effect; every call inside it is
        applied immediately.
        """
        yield self
