"""
Note Repository

Data access layer for the authoritative note table. Every query is scoped
to one principal (``user_id``), which makes the table logically per-user.
"""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.models import Note
from notesync.repositories.base import BaseRepository
from notesync.schemas.notes import now_ms


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note entities.

    Inherits create/update from BaseRepository and adds:
        - get: principal-scoped lookup by client id (tombstones included)
        - list_since: watermark query for replicas pulling changes
        - soft_delete: tombstone write
    """

    def __init__(self) -> None:
        super().__init__(Note)

    async def get(
        self,
        session: AsyncSession,
        user_id: str,
        note_id: str,
    ) -> Note | None:
        """Get a note by id for a principal. Returns None if not found."""
        result = await session.execute(
            select(Note).where(Note.user_id == user_id, Note.id == note_id)
        )
        return result.scalars().first()

    async def list_since(
        self,
        session: AsyncSession,
        user_id: str,
        since: int = 0,
        include_deleted: bool = False,
    ) -> Sequence[Note]:
        """
        Notes changed after a watermark, newest first.

        Args:
            session: Database session.
            user_id: Owning principal.
            since: Epoch ms watermark (exclusive). 0 returns full history.
            include_deleted: Also return tombstones.
        """
        stmt = select(Note).where(Note.user_id == user_id, Note.updated_at > since)
        if not include_deleted:
            stmt = stmt.where(Note.deleted.is_(False))
        stmt = stmt.order_by(Note.updated_at.desc())
        result = await session.execute(stmt)
        return result.scalars().all()

    async def soft_delete(self, session: AsyncSession, note: Note) -> Note:
        """
        Tombstone a note: set ``deleted``, bump ``version`` and ``updated_at``.

        Already tombstoned notes are returned unchanged.
        """
        if note.deleted:
            return note
        note.deleted = True
        note.version += 1
        # Never move updated_at backwards, client clocks may run ahead
        note.updated_at = max(now_ms(), note.updated_at + 1)
        await session.commit()
        await session.refresh(note)
        return note


# Module-level instance for convenience imports
note_repository = NoteRepository()
