"""
Document Store Client

A collection-scoped document API on top of SQLAlchemy's asyncio extension.

Concepts:
=========
- DocumentStore: owns the engine; entry point via collection(name)
- CollectionReference: a named group of documents
- DocumentReference: one document, addressed by (collection, id)
- Query: immutable equality-filter + order-by + limit composition
- DocumentSnapshot: the state of a document as read at one moment

Writes may contain SERVER_TIMESTAMP; it is resolved to the store's commit
time inside the write transaction. Callers that need the resolved value must
read the document again after the write returns.

Any SQLAlchemy failure, and any connection failure the driver raises
directly (refused connects, connect timeouts), surfaces as
StoreUnavailableError.

Usage:
    store = DocumentStore.from_url("sqlite+aiosqlite:///./kobowave.db")
    await store.create_schema()

    ref = store.collection("reviews").document()
    await ref.set({"rating": 5, "createdAt": SERVER_TIMESTAMP})
    snapshot = await ref.get()
"""

import asyncio
import logging
import secrets
import string
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, delete, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, create_engine
from app.exceptions import StoreUnavailableError
from app.models.document import Document
from app.store.values import (
    TIMESTAMP_TAG,
    Timestamp,
    decode_value,
    encode_value,
    resolve_server_timestamps,
    sort_key,
)

logger = logging.getLogger(__name__)

AUTO_ID_LENGTH = 20
_AUTO_ID_ALPHABET = string.ascii_letters + string.digits

# asyncpg lets OSError (refused connects, connect timeouts) through unwrapped
STORE_ERRORS = (SQLAlchemyError, OSError)


def generate_document_id() -> str:
    """Random 20-character alphanumeric id (~119 bits of entropy)."""
    return "".join(secrets.choice(_AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


class DocumentNotFound(LookupError):
    """An update targeted a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        self.collection = collection
        self.document_id = document_id
        super().__init__(f"No document to update: {collection}/{document_id}")


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a committed write."""

    update_time: Timestamp


class ServerClock:
    """
    Commit-time source for the store.

    Strictly monotonic: two commits never share a time and a later commit
    never gets an earlier one, even if the wall clock steps backwards.

    The clock lives in the application process, not in the database. With
    several worker processes each one has its own clock, so commit times are
    only monotonic per process and depend on the hosts' clocks being in sync.
    """

    def __init__(self) -> None:
        self._last: datetime | None = None

    def now(self) -> Timestamp:
        current = datetime.now(UTC)
        if self._last is not None and current <= self._last:
            current = self._last + timedelta(microseconds=1)
        self._last = current
        return Timestamp(current)


def _as_timestamp(value: datetime | None) -> Timestamp | None:
    if value is None:
        return None
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return Timestamp(value)


# =============================================================================
# Snapshots
# =============================================================================


class DocumentSnapshot:
    """
    Read-only view of a document.

    exists is False when the document was not found; to_dict() then
    returns None.
    """

    def __init__(
        self,
        reference: "DocumentReference",
        data: dict[str, Any] | None,
        create_time: Timestamp | None = None,
        update_time: Timestamp | None = None,
    ) -> None:
        self.reference = reference
        self._data = data
        self.create_time = create_time
        self.update_time = update_time

    @classmethod
    def _from_row(cls, store: "DocumentStore", row: Document) -> "DocumentSnapshot":
        reference = DocumentReference(store, row.collection, row.id)
        return cls(
            reference,
            decode_value(row.data),
            create_time=_as_timestamp(row.create_time),
            update_time=_as_timestamp(row.update_time),
        )

    @property
    def id(self) -> str:
        return self.reference.id

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        """Return a shallow copy of the document fields."""
        if self._data is None:
            return None
        return dict(self._data)

    def get(self, field: str, default: Any = None) -> Any:
        if self._data is None:
            return default
        return self._data.get(field, default)

    def __repr__(self) -> str:
        return f"<DocumentSnapshot({self.reference.path!r}, exists={self.exists})>"


# =============================================================================
# References
# =============================================================================


class DocumentReference:
    """A single document in a collection."""

    def __init__(self, store: "DocumentStore", collection: str, document_id: str) -> None:
        self._store = store
        self.collection = collection
        self.id = document_id

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"

    async def get(self) -> DocumentSnapshot:
        """Read the document. A missing document yields exists=False."""
        async with self._store._transaction() as session:
            row = await session.get(Document, (self.collection, self.id))
            if row is None:
                return DocumentSnapshot(self, None)
            return DocumentSnapshot._from_row(self._store, row)

    async def set(self, data: dict[str, Any]) -> WriteResult:
        """Create the document or replace all of its fields."""
        async with self._store._transaction() as session:
            commit_time = self._store.clock.now()
            encoded = encode_value(resolve_server_timestamps(dict(data), commit_time))
            when = commit_time.to_datetime()

            row = await session.get(Document, (self.collection, self.id))
            if row is None:
                session.add(
                    Document(
                        collection=self.collection,
                        id=self.id,
                        data=encoded,
                        create_time=when,
                        update_time=when,
                    )
                )
            else:
                row.data = encoded
                row.update_time = when

        return WriteResult(update_time=commit_time)

    async def update(self, fields: dict[str, Any]) -> WriteResult:
        """
        Merge top-level fields into an existing document.

        Raises:
            DocumentNotFound: if the document does not exist
        """
        async with self._store._transaction() as session:
            row = await session.get(Document, (self.collection, self.id))
            if row is None:
                raise DocumentNotFound(self.collection, self.id)

            commit_time = self._store.clock.now()
            encoded = encode_value(resolve_server_timestamps(dict(fields), commit_time))

            merged = dict(row.data)
            merged.update(encoded)
            row.data = merged
            row.update_time = commit_time.to_datetime()

        return WriteResult(update_time=commit_time)

    async def delete(self) -> WriteResult:
        """Delete the document. Deleting a missing document is not an error."""
        async with self._store._transaction() as session:
            commit_time = self._store.clock.now()
            row = await session.get(Document, (self.collection, self.id))
            if row is not None:
                await session.delete(row)

        return WriteResult(update_time=commit_time)

    async def pop(self) -> DocumentSnapshot:
        """
        Delete the document and return the state it had.

        Read and delete are a single DELETE ... RETURNING, so when two
        callers pop the same document only one of them gets it back; the
        other sees exists=False.
        """
        stmt = (
            delete(Document)
            .where(Document.collection == self.collection, Document.id == self.id)
            .returning(Document)
            .execution_options(synchronize_session=False)
        )
        async with self._store._transaction() as session:
            row = (await session.execute(stmt)).scalars().first()
            if row is None:
                return DocumentSnapshot(self, None)
            return DocumentSnapshot._from_row(self._store, row)

    def __repr__(self) -> str:
        return f"<DocumentReference({self.path!r})>"


# Names each backend's JSON type function reports for a filter value's type
_JSON_TYPE_NAMES = {
    "sqlite": {
        bool: ("true", "false"),
        int: ("integer",),
        float: ("integer", "real"),
        str: ("text",),
    },
    "postgresql": {
        bool: ("boolean",),
        int: ("number",),
        float: ("number",),
        str: ("string",),
    },
}


def _json_type(field: str, dialect_name: str) -> ColumnElement[str] | None:
    if dialect_name == "sqlite":
        return func.json_type(Document.data, f'$."{field}"')
    if dialect_name == "postgresql":
        return func.json_typeof(Document.data[field])
    return None


def _json_equals(field: str, value: Any, dialect_name: str | None = None) -> ColumnElement[bool]:
    """
    Typed equality against one top-level JSON field.

    The as_* casts alone would let "5" match a stored 5 on some backends, so
    the stored value's JSON type is checked as well where the backend can
    report it.
    """
    column = Document.data[field]
    if isinstance(value, bool):
        kind, condition = bool, column.as_boolean() == value
    elif isinstance(value, int):
        kind, condition = int, column.as_integer() == value
    elif isinstance(value, float):
        kind, condition = float, column.as_float() == value
    elif isinstance(value, str):
        kind, condition = str, column.as_string() == value
    else:
        raise TypeError(f"Unsupported filter value for {field!r}: {type(value).__name__}")

    type_names = _JSON_TYPE_NAMES.get(dialect_name or "", {}).get(kind)
    if type_names is None:
        return condition
    return _json_type(field, dialect_name).in_(type_names) & condition


def _timestamp_text(field: str) -> ColumnElement[str]:
    """The ISO string inside a tagged timestamp field (NULL for other values)."""
    return Document.data[(field, TIMESTAMP_TAG)].as_string()


class Query:
    """
    Immutable query over one collection.

    Each builder method returns a new Query. Filters are equality-only and
    combined with AND. Ordering drops documents that lack an ordered field
    and always ends with the document id as tie-break, in the direction of
    the last order_by.

    order_by() accepts fields of any type and sorts in Python after loading
    every match. order_by_time() only keeps documents whose field holds a
    timestamp and lets the database do the ordering and the limit. The two
    cannot be mixed in one query.
    """

    def __init__(
        self,
        store: "DocumentStore",
        collection: str,
        filters: tuple[tuple[str, Any], ...] = (),
        orders: tuple[tuple[str, bool], ...] = (),
        limit: int | None = None,
        time_ordered: bool = False,
    ) -> None:
        self._store = store
        self._collection = collection
        self._filters = filters
        self._orders = orders
        self._limit = limit
        self._time_ordered = time_ordered

    def _copy(self, **changes: Any) -> "Query":
        params = {
            "filters": self._filters,
            "orders": self._orders,
            "limit": self._limit,
            "time_ordered": self._time_ordered,
        }
        params.update(changes)
        return Query(self._store, self._collection, **params)

    def where(self, field: str, value: Any) -> "Query":
        if value is None:
            raise ValueError(f"Equality filter on {field!r} needs a value")
        _json_equals(field, value)  # reject unsupported types early
        return self._copy(filters=self._filters + ((field, value),))

    def order_by(self, field: str, descending: bool = False) -> "Query":
        if self._time_ordered:
            raise ValueError("order_by cannot follow order_by_time")
        return self._copy(orders=self._orders + ((field, descending),))

    def order_by_time(self, field: str, descending: bool = False) -> "Query":
        """Order by a timestamp field; documents where it is not a timestamp are left out."""
        if self._orders and not self._time_ordered:
            raise ValueError("order_by_time cannot follow order_by")
        return self._copy(orders=self._orders + ((field, descending),), time_ordered=True)

    def limit(self, count: int) -> "Query":
        if count < 1:
            raise ValueError("limit must be positive")
        return self._copy(limit=count)

    async def get(self) -> list[DocumentSnapshot]:
        """Run the query and return matching snapshots."""
        dialect_name = self._store.dialect_name
        stmt = select(Document).where(Document.collection == self._collection)
        for field, value in self._filters:
            stmt = stmt.where(_json_equals(field, value, dialect_name))

        sort_in_python = bool(self._orders) and not self._time_ordered
        if self._time_ordered:
            # Tagged ISO strings are fixed width, so text order is time order
            for field, descending in self._orders:
                key = _timestamp_text(field)
                stmt = stmt.where(key.is_not(None))
                stmt = stmt.order_by(key.desc() if descending else key.asc())
            last_descending = self._orders[-1][1]
            stmt = stmt.order_by(Document.id.desc() if last_descending else Document.id.asc())
        elif not self._orders:
            stmt = stmt.order_by(Document.id)
        if self._limit is not None and not sort_in_python:
            stmt = stmt.limit(self._limit)

        async with self._store._transaction() as session:
            rows = (await session.execute(stmt)).scalars().all()
            snapshots = [DocumentSnapshot._from_row(self._store, row) for row in rows]

        if sort_in_python:
            snapshots = self._sort(snapshots)
            if self._limit is not None:
                snapshots = snapshots[: self._limit]
        return snapshots

    def _sort(self, snapshots: list[DocumentSnapshot]) -> list[DocumentSnapshot]:
        # Field values are typed JSON, so ordering happens here rather than in SQL.
        fields = [field for field, _ in self._orders]
        kept = [
            snap for snap in snapshots
            if all(field in snap._data for field in fields)
        ]
        # Stable sorts applied from least to most significant key
        last_descending = self._orders[-1][1]
        kept.sort(key=lambda snap: snap.id, reverse=last_descending)
        for field, descending in reversed(self._orders):
            kept.sort(key=lambda snap, f=field: sort_key(snap._data[f]), reverse=descending)
        return kept


class CollectionReference(Query):
    """A named collection; also the root Query over it."""

    def __init__(self, store: "DocumentStore", name: str) -> None:
        super().__init__(store, name)
        self.name = name

    def document(self, document_id: str | None = None) -> DocumentReference:
        """Reference a document, generating a new id when none is given."""
        return DocumentReference(self._store, self.name, document_id or generate_document_id())

    def __repr__(self) -> str:
        return f"<CollectionReference({self.name!r})>"


# =============================================================================
# Store
# =============================================================================


class DocumentStore:
    """
    Entry point to the document store.

    Holds the engine (shared by all concurrent callers), a session factory
    and the commit clock. Nothing else is cached between calls.

    An engine on a StaticPool (in-memory SQLite) has exactly one connection,
    which cannot carry two transactions at once; store calls on such an
    engine take turns.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._single_connection = isinstance(engine.pool, StaticPool)
        self._turn = asyncio.Lock()
        self.clock = ServerClock()

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def _take_turn(self):
        return self._turn if self._single_connection else nullcontext()

    @classmethod
    def from_url(cls, database_url: str | None = None, echo: bool | None = None) -> "DocumentStore":
        return cls(create_engine(database_url, echo=echo))

    def collection(self, name: str) -> CollectionReference:
        if not name or "/" in name:
            raise ValueError(f"Invalid collection name: {name!r}")
        return CollectionReference(self, name)

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """One session and transaction per store call."""
        async with self._take_turn():
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        yield session
            except STORE_ERRORS as exc:
                logger.error(f"Document store error: {exc!r}")
                raise StoreUnavailableError("Document store operation failed") from exc

    async def create_schema(self) -> None:
        """Create the backing table if it does not exist."""
        async with self._take_turn():
            try:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except STORE_ERRORS as exc:
                logger.error(f"Could not create document store schema: {exc!r}")
                raise StoreUnavailableError("Document store schema creation failed") from exc

    async def ping(self) -> bool:
        """Return True when the backing database answers a trivial query."""
        try:
            async with self._take_turn():
                async with self._engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            return True
        except STORE_ERRORS as exc:
            logger.warning(f"Document store ping failed: {exc}")
            return False

    async def close(self) -> None:
        await self._engine.dispose()
