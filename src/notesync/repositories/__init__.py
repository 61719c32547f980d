"""Repositories package."""

from notesync.repositories.base import BaseRepository
from notesync.repositories.notes import NoteRepository, note_repository

__all__ = [
    "BaseRepository",
    "NoteRepository",
    "note_repository",
]
