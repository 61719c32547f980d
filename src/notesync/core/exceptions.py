"""
Exception Hierarchy

Errors shared by the reconciliation service and the sync client.
Version races are never raised: they travel as data in ``conflicts``.
"""


class NoteSyncError(Exception):
    """Base class for all notesync errors."""


class NoteNotFoundError(NoteSyncError):
    """The targeted note does not exist for the principal."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


class NoteConflictError(NoteSyncError):
    """A note with the same id already exists for the principal."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note already exists: {note_id}")
        self.note_id = note_id


class TransportError(NoteSyncError):
    """Network failure or unexpected response from the remote service."""


class StorageError(NoteSyncError):
    """Local durable store failure."""
