"""
Sync Events

Typed observer channel for orchestrator lifecycle events. Events are for
UI feedback and observability only; nothing in the sync protocol depends
on a listener.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from notesync.schemas.notes import NoteRecord, SyncConflict

logger = logging.getLogger(__name__)


class SyncEventType(StrEnum):
    SYNC_START = "SYNC_START"
    SYNC_SUCCESS = "SYNC_SUCCESS"
    SYNC_ERROR = "SYNC_ERROR"
    # Push phase: the service rejected client records (server ahead)
    CONFLICTS_DETECTED = "CONFLICTS_DETECTED"
    # Pull phase: remote is newer than a local record with unpushed edits
    CONFLICT_DETECTED = "CONFLICT_DETECTED"


@dataclass(frozen=True)
class SyncEvent:
    """
    One lifecycle event.

    Attributes:
        type: Event tag.
        error: Failure that aborted the round (SYNC_ERROR).
        conflicts: Client/server pairs rejected by bulk sync (CONFLICTS_DETECTED).
        local: Local pending copy (CONFLICT_DETECTED).
        remote: Newer remote copy (CONFLICT_DETECTED).
    """

    type: SyncEventType
    error: Exception | None = None
    conflicts: tuple[SyncConflict, ...] = ()
    local: NoteRecord | None = None
    remote: NoteRecord | None = None


Listener = Callable[[SyncEvent], None]


class Subscription:
    """Handle returned by ``EventChannel.subscribe``."""

    def __init__(self, channel: EventChannel, listener: Listener) -> None:
        self._channel = channel
        self.listener = listener

    @property
    def active(self) -> bool:
        return self._channel.is_subscribed(self.listener)

    def unsubscribe(self) -> None:
        self._channel.unsubscribe(self.listener)


class EventChannel:
    """
    Ordered fan-out of ``SyncEvent`` to registered listeners.

    Listeners are called synchronously in registration order. A listener
    that raises is logged and skipped; delivery to the others continues.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener. Registering the same callable twice is a no-op."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def unsubscribe(self, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            return False
        return True

    def is_subscribed(self, listener: Listener) -> bool:
        return listener in self._listeners

    def emit(self, event: SyncEvent) -> None:
        # Snapshot: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Sync event listener failed on %s", event.type)

    def __len__(self) -> int:
        return len(self._listeners)
