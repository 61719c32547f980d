"""
Reconciliation Service

Authoritative merge logic for one principal's note table.

Design:
    - Stateless: one instance per request, bound to a session and user id.
    - Version is the only conflict signal. Client timestamps are untrusted.
    - bulk_sync decides each record independently, so concurrent batches
      from several devices are safe without cross-device locking.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.core.exceptions import NoteConflictError, NoteNotFoundError
from notesync.repositories.notes import NoteRepository, note_repository
from notesync.schemas.notes import NoteRecord, NoteUpdate, SyncConflict

logger = logging.getLogger(__name__)

# Fields a client may write on the authoritative record
CLIENT_FIELDS = {"title", "content", "created_at", "updated_at", "version"}


@dataclass
class BulkSyncResult:
    """Outcome of a bulk sync: accepted records and rejected pairs."""

    synced: list[NoteRecord] = field(default_factory=list)
    conflicts: list[SyncConflict] = field(default_factory=list)


class ReconciliationService:
    """
    Per-request handler over the authoritative note table.

    Usage::

        service = ReconciliationService(session, user_id)
        result = await service.bulk_sync(records)
    """

    def __init__(
        self,
        session: AsyncSession,
        user_id: str,
        repository: NoteRepository | None = None,
    ) -> None:
        self._session = session
        self._user_id = user_id
        self._repo = repository or note_repository

    async def list_since(
        self, since: int = 0, include_deleted: bool = False
    ) -> list[NoteRecord]:
        """
        Records changed after ``since`` (epoch ms), newest first.

        Tombstones are excluded unless ``include_deleted`` is set.
        """
        notes = await self._repo.list_since(
            self._session, self._user_id, since, include_deleted
        )
        return [NoteRecord.model_validate(n) for n in notes]

    async def create(self, record: NoteRecord) -> NoteRecord:
        """
        Insert a new authoritative record.

        Raises:
            NoteConflictError: The id already exists for this principal.
        """
        if await self._repo.get(self._session, self._user_id, record.id) is not None:
            raise NoteConflictError(record.id)
        note = await self._repo.create(self._session, self._new_row(record))
        logger.info(
            "Created note %s (v%d) for %s", note.id, note.version, self._user_id
        )
        return NoteRecord.model_validate(note)

    async def update(self, note_id: str, patch: NoteUpdate) -> NoteRecord:
        """
        Apply a partial update without version arbitration.

        Raises:
            NoteNotFoundError: No record with that id for this principal.
        """
        note = await self._repo.get(self._session, self._user_id, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        note = await self._repo.update(self._session, note, patch)
        return NoteRecord.model_validate(note)

    async def soft_delete(self, note_id: str) -> NoteRecord:
        """
        Tombstone a note. Idempotent.

        Raises:
            NoteNotFoundError: No record with that id for this principal.
        """
        note = await self._repo.get(self._session, self._user_id, note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        note = await self._repo.soft_delete(self._session, note)
        logger.info("Tombstoned note %s (v%d)", note.id, note.version)
        return NoteRecord.model_validate(note)

    async def bulk_sync(self, records: Sequence[NoteRecord]) -> BulkSyncResult:
        """
        Merge a batch of client records, one decision per record.

        Rules:
            - Unknown id: insert with the client's version -> synced.
            - Server version > client version: conflict, server row untouched.
            - Otherwise (ties included): client fields overwrite -> synced.

        Ties go to the client so that a resubmission after a dropped response
        lands in ``synced`` again instead of raising a spurious conflict.
        The tombstone flag is never cleared by a client write.

        Another device may insert one of the new ids between our lookup and
        our commit. The batch is then rolled back and merged once more, so
        that id goes through the version comparison instead of failing.
        """
        try:
            result = await self._merge(records)
        except IntegrityError:
            await self._session.rollback()
            logger.warning(
                "Concurrent insert during bulk sync for %s, retrying batch",
                self._user_id,
            )
            result = await self._merge(records)

        logger.info(
            "Bulk sync for %s: %d received, %d synced, %d conflicts",
            self._user_id,
            len(records),
            len(result.synced),
            len(result.conflicts),
        )
        return result

    async def _merge(self, records: Sequence[NoteRecord]) -> BulkSyncResult:
        result = BulkSyncResult()

        for record in records:
            server = await self._repo.get(self._session, self._user_id, record.id)

            if server is None:
                server = await self._repo.create(
                    self._session, self._new_row(record), commit=False
                )
            elif server.version > record.version:
                result.conflicts.append(
                    SyncConflict(
                        client=record, server=NoteRecord.model_validate(server)
                    )
                )
                continue
            else:
                server = await self._repo.update(
                    self._session,
                    server,
                    record.model_dump(include=CLIENT_FIELDS),
                    commit=False,
                )

            result.synced.append(NoteRecord.model_validate(server))

        await self._session.commit()
        return result

    def _new_row(self, record: NoteRecord) -> dict:
        data = record.model_dump(include=CLIENT_FIELDS)
        data.update(id=record.id, user_id=self._user_id, deleted=False)
        return data
