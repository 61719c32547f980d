"""
Note Model

Authoritative note record held by the reconciliation service.
One logical table per user: every query is scoped by ``user_id``.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from notesync.models.base import Base, NoteFieldsMixin


class Note(Base, NoteFieldsMixin):
    """
    Authoritative note entity.

    Attributes:
        id: Client-generated identifier, unique per user.
        user_id: Owning principal.
        deleted: Soft delete tombstone. Tombstoned rows are kept so other
            replicas can learn about the deletion.
    """

    __tablename__ = "notes"
    __table_args__ = (Index("ix_notes_user_id_updated_at", "user_id", "updated_at"),)

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    deleted: Mapped[bool] = mapped_column(default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, v={self.version}, deleted={self.deleted})>"
