"""
Local Durable Store

Device-side replica table. Pure storage: every merge decision is taken by
the sync orchestrator, the store only upserts, reads and deletes rows.

Design:
    - ``LocalStore`` is the contract; any embedded store honouring it works.
    - ``SqlLocalStore`` implements it on async SQLAlchemy (SQLite via
      aiosqlite on device). One transaction per call, so single-record
      upserts and deletes are atomic.
    - Driver errors surface as ``StorageError``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notesync.core.exceptions import StorageError
from notesync.models import Base, LocalNote
from notesync.schemas.notes import NoteRecord, SyncStatus

logger = logging.getLogger(__name__)

# Columns persisted on device (``deleted`` is never stored locally)
LOCAL_FIELDS = {
    "id",
    "user_id",
    "title",
    "content",
    "created_at",
    "updated_at",
    "version",
    "sync_status",
    "last_synced_at",
}


class LocalStore(Protocol):
    """Contract of the device replica used by the orchestrator and the shell."""

    async def get_all(self) -> list[NoteRecord]: ...

    async def get(self, note_id: str) -> NoteRecord | None: ...

    async def put(self, record: NoteRecord) -> None: ...

    async def delete(self, note_id: str) -> None: ...

    async def get_by_status(self, status: SyncStatus) -> list[NoteRecord]: ...

    async def clear(self) -> None: ...

    async def put_if_unchanged(
        self, record: NoteRecord, expected: NoteRecord | None
    ) -> bool: ...

    async def delete_if_unchanged(self, expected: NoteRecord) -> bool: ...


class SqlLocalStore:
    """
    ``LocalStore`` backed by the ``local_notes`` table.

    Usage::

        store = await create_local_store("sqlite+aiosqlite:///notes.db")
        await store.put(record)
        pending = await store.get_by_status(SyncStatus.PENDING)
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def init_schema(self) -> None:
        """Create the replica table and its indexes if missing."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(
                    Base.metadata.create_all, tables=[LocalNote.__table__]
                )
        except SQLAlchemyError as e:
            raise StorageError(f"Could not initialise local store: {e}") from e

    async def close(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def get_all(self) -> list[NoteRecord]:
        """Every local record, unordered."""
        async with self._transaction() as session:
            result = await session.execute(select(LocalNote))
            return self._to_records(result.scalars().all())

    async def get(self, note_id: str) -> NoteRecord | None:
        async with self._transaction() as session:
            row = await session.get(LocalNote, note_id)
            return NoteRecord.model_validate(row) if row is not None else None

    async def get_by_status(self, status: SyncStatus) -> list[NoteRecord]:
        """Records in one sync state (secondary index lookup)."""
        async with self._transaction() as session:
            result = await session.execute(
                select(LocalNote).where(LocalNote.sync_status == status.value)
            )
            return self._to_records(result.scalars().all())

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def put(self, record: NoteRecord) -> None:
        """Upsert by id. Last write wins at this layer."""
        async with self._transaction() as session:
            await session.merge(self._to_row(record))

    async def delete(self, note_id: str) -> None:
        """Physically remove a record. Missing ids are ignored."""
        async with self._transaction() as session:
            await session.execute(delete(LocalNote).where(LocalNote.id == note_id))

    async def clear(self) -> None:
        """Wipe the replica (logout)."""
        async with self._transaction() as session:
            await session.execute(delete(LocalNote))
        logger.info("Local store cleared")

    # ------------------------------------------------------------------
    # Conditional writes (sync write-backs)
    # ------------------------------------------------------------------

    async def put_if_unchanged(
        self, record: NoteRecord, expected: NoteRecord | None
    ) -> bool:
        """
        Upsert ``record`` only if the stored row still matches ``expected``
        (same version and sync status, or still absent when ``expected`` is
        None). Check and write share one transaction.

        Returns:
            False when a concurrent local edit got there first.
        """
        async with self._transaction() as session:
            row = await session.get(LocalNote, record.id)
            if not self._matches(row, expected):
                return False
            await session.merge(self._to_row(record))
        return True

    async def delete_if_unchanged(self, expected: NoteRecord) -> bool:
        """Delete the row only if it still matches ``expected``."""
        async with self._transaction() as session:
            row = await session.get(LocalNote, expected.id)
            if row is None or not self._matches(row, expected):
                return False
            await session.delete(row)
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as e:
            logger.error("Local store failure: %s", e)
            raise StorageError(str(e)) from e

    @staticmethod
    def _to_row(record: NoteRecord) -> LocalNote:
        data = record.model_dump(include=LOCAL_FIELDS)
        data["sync_status"] = (record.sync_status or SyncStatus.PENDING).value
        return LocalNote(**data)

    @staticmethod
    def _matches(row: LocalNote | None, expected: NoteRecord | None) -> bool:
        if expected is None or row is None:
            return expected is None and row is None
        status = (expected.sync_status or SyncStatus.PENDING).value
        return row.version == expected.version and row.sync_status == status

    @staticmethod
    def _to_records(rows: Sequence[LocalNote]) -> list[NoteRecord]:
        return [NoteRecord.model_validate(row) for row in rows]


async def create_local_store(url: str, **engine_kwargs) -> SqlLocalStore:
    """Open (and if needed create) a device replica at ``url``."""
    engine = create_async_engine(url, echo=False, **engine_kwargs)
    store = SqlLocalStore(engine)
    await store.init_schema()
    logger.info("Local store ready (%s)", engine.url.render_as_string())
    return store
