"""SQLite document store built on SQLModel.

All collections share one ``documents`` table. Each row holds a document's
collection, id and JSON body; equality queries go through SQLite's
``json_extract``. Calls made inside transaction() share one session and are
committed together.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from seatwatch.common.exceptions import (
    DocumentNotFoundError,
    DocumentReadError,
    DocumentWriteError,
)
from seatwatch.store.base import DocumentRef, DocumentSnapshot, RecordStore

logger = logging.getLogger(__name__)


class StoredDocument(SQLModel, table=True):  # type: ignore[call-arg]
    """One document of any collection."""

    __tablename__ = "documents"
    __table_args__ = (
        sa.UniqueConstraint("collection", "doc_id", name="uq_documents_path"),
        sa.Index("idx_documents_collection", "collection"),
    )

    pk: int | None = Field(default=None, primary_key=True)
    collection: str
    doc_id: str
    data_json: str


def create_store_engine(db_path: Path | str, echo: bool = False) -> Engine:
    """Create an engine and make sure the documents table exists.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.
        echo: Whether to echo SQL statements (for debugging).

    Returns:
        An initialized Engine.
    """
    if str(db_path) == ":memory:":
        engine = create_engine(
            "sqlite://",
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=echo)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    SQLModel.metadata.create_all(engine)
    return engine


def _json_path(field: str) -> str:
    return '$."' + field.replace('"', '\\"') + '"'


class SQLRecordStore(RecordStore):
    """RecordStore persisted in a SQLite database.

    Example::

        with SQLRecordStore("seatwatch.db") as store:
            ArchiveMigrator(store).migrate("31245", "a1b2c3", "202470")
    """

    def __init__(self, db_path: Path | str, echo: bool = False) -> None:
        self.db_path = db_path
        self._engine = create_store_engine(db_path, echo=echo)
        self._session: Session | None = None

    def close(self) -> None:
        """Dispose of the engine and its connections."""
        self._engine.dispose()

    def __enter__(self) -> SQLRecordStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[SQLRecordStore]:
        """Run the enclosed calls in one session and commit them together.

        Nested calls reuse the outer transaction.
        """
        if self._session is not None:
            yield self
            return

        with Session(self._engine) as session:
            self._session = session
            try:
                yield self
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                self._session = None

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            self._session.flush()
            return

        with Session(self._engine) as session:
            yield session
            session.commit()

    def _row(
        self, session: Session, collection: str, doc_id: str
    ) -> StoredDocument | None:
        return session.exec(
            select(StoredDocument).where(
                StoredDocument.collection == collection,
                StoredDocument.doc_id == doc_id,
            )
        ).first()

    def find_by_equality(
        self,
        collection: str,
        field: str,
        value: Any,
        *more: tuple[str, Any],
    ) -> list[DocumentSnapshot]:
        statement = select(StoredDocument).where(
            StoredDocument.collection == collection
        )
        for name, expected in [(field, value), *more]:
            statement = statement.where(
                sa.func.json_extract(StoredDocument.data_json, _json_path(name))
                == expected
            )
        statement = statement.order_by(StoredDocument.pk)  # type: ignore[arg-type]

        try:
            with self._session_scope() as session:
                rows = session.exec(statement).all()
                return [
                    DocumentSnapshot(
                        DocumentRef(collection, row.doc_id),
                        json.loads(row.data_json),
                    )
                    for row in rows
                ]
        except (SQLAlchemyError, ValueError) as e:
            logger.error(
                f"Query on {collection} failed: {e}",
                extra={"operation": "find_by_equality", "field": field},
            )
            raise DocumentReadError(str(e), "find_by_equality", collection) from e

    def get(self, collection: str, doc_id: str) -> DocumentSnapshot:
        try:
            with self._session_scope() as session:
                row = self._row(session, collection, doc_id)
                data = json.loads(row.data_json) if row is not None else None
        except (SQLAlchemyError, ValueError) as e:
            logger.error(
                f"Reading {collection}/{doc_id} failed: {e}",
                extra={"operation": "get", "document_id": doc_id},
            )
            raise DocumentReadError(str(e), "get", collection, doc_id) from e

        if data is None:
            raise DocumentNotFoundError(collection, doc_id)
        return DocumentSnapshot(DocumentRef(collection, doc_id), data)

    def set_merge(self, ref: DocumentRef, fields: dict[str, Any]) -> None:
        try:
            with self._session_scope() as session:
                row = self._row(session, ref.collection, ref.id)
                if row is None:
                    raise DocumentWriteError(
                        "document does not exist",
                        "set_merge",
                        ref.collection,
                        ref.id,
                    )
                data = json.loads(row.data_json)
                data.update(fields)
                row.data_json = json.dumps(data)
                session.add(row)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(
                f"Merging into {ref.path} failed: {e}",
                extra={"operation": "set_merge", "document_id": ref.id},
            )
            raise DocumentWriteError(
                str(e), "set_merge", ref.collection, ref.id
            ) from e

    def add(self, collection: str, fields: dict[str, Any]) -> DocumentRef:
        ref = DocumentRef(collection, uuid.uuid4().hex[:20])
        try:
            with self._session_scope() as session:
                session.add(
                    StoredDocument(
                        collection=collection,
                        doc_id=ref.id,
                        data_json=json.dumps(fields),
                    )
                )
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(
                f"Adding to {collection} failed: {e}",
                extra={"operation": "add", "document_id": ref.id},
            )
            raise DocumentWriteError(str(e), "add", collection, ref.id) from e

        logger.debug(f"Added {ref.path}")
        return ref

    def put(self, ref: DocumentRef, fields: dict[str, Any]) -> None:
        """Create or replace a document under a known id."""
        try:
            with self._session_scope() as session:
                row = self._row(session, ref.collection, ref.id)
                if row is None:
                    row = StoredDocument(
                        collection=ref.collection, doc_id=ref.id, data_json=""
                    )
                row.data_json = json.dumps(fields)
                session.add(row)
        except (SQLAlchemyError, TypeError, ValueError) as e:
            raise DocumentWriteError(
                str(e), "put", ref.collection, ref.id
            ) from e

    def delete(self, ref: DocumentRef) -> None:
        try:
            with self._session_scope() as session:
                row = self._row(session, ref.collection, ref.id)
                if row is not None:
                    session.delete(row)
        except SQLAlchemyError as e:
            logger.error(
                f"Deleting {ref.path} failed: {e}",
                extra={"operation": "delete", "document_id": ref.id},
            )
            raise DocumentWriteError(
                str(e), "delete", ref.collection, ref.id
            ) from e
