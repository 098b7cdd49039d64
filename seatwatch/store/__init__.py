"""Record store contract and implementations."""

from seatwatch.store.base import (
    SECTIONS_ARCHIVE,
    SECTIONS_TRACKED,
    USERS,
    DocumentRef,
    DocumentSnapshot,
    RecordStore,
)
from seatwatch.store.memory import MemoryRecordStore

__all__ = [
    "SECTIONS_ARCHIVE",
    "SECTIONS_TRACKED",
    "USERS",
    "DocumentRef",
    "DocumentSnapshot",
    "MemoryRecordStore",
    "RecordStore",
]
