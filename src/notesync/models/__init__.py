"""Models package - re-exports all models for convenient imports."""

from notesync.models.base import Base, NoteFieldsMixin
from notesync.models.local_note import LocalNote
from notesync.models.note import Note

__all__ = [
    "Base",
    "NoteFieldsMixin",
    "LocalNote",
    "Note",
]
