"""
Local Note Model

Device-local replica table. Carries the client-only sync bookkeeping
columns and a secondary index on ``sync_status`` for push lookups.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from notesync.models.base import Base, NoteFieldsMixin


class LocalNote(Base, NoteFieldsMixin):
    """Replica row keyed by note id."""

    __tablename__ = "local_notes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    sync_status: Mapped[str] = mapped_column(String(16), index=True)
    last_synced_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        return f"<LocalNote(id={self.id}, v={self.version}, {self.sync_status})>"
