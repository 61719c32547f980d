"""
Deletion Guard

Session-scoped memory of notes the user deleted on this device.

A guarded id is never written back into the local store by a sync round,
even when a stale remote copy is pulled. The guard is a hint, not a
tombstone: it lives in memory only and the durable deletion authority is
the server-side ``deleted`` flag.

Two parts:
    - ``unconfirmed``: ids whose remote tombstone has not been acknowledged
      yet. They never expire; the next round pushes the deletion.
    - ``recent``: bounded TTL cache (id -> marked-at time). Confirmed ids
      stay suppressed for ``ttl`` seconds after confirmation, which must
      span at least one full sync cycle.
"""

import logging
import time
from collections.abc import Callable

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600.0
DEFAULT_MAXSIZE = 1024


class DeletionGuard:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timer = timer
        self._recent: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._unconfirmed: dict[str, float] = {}

    def mark(self, note_id: str) -> None:
        """Record a local deletion that still has to reach the server."""
        marked_at = self._timer()
        self._unconfirmed[note_id] = marked_at
        self._recent[note_id] = marked_at
        logger.debug("Guarding deleted note %s", note_id)

    def confirm(self, note_id: str) -> None:
        """The server tombstoned the note; keep suppressing it for one TTL."""
        self._unconfirmed.pop(note_id, None)
        self._recent[note_id] = self._timer()

    def unconfirmed(self) -> list[str]:
        """Ids awaiting a remote tombstone, oldest first."""
        return sorted(self._unconfirmed, key=self._unconfirmed.__getitem__)

    def clear(self) -> None:
        self._unconfirmed.clear()
        self._recent.clear()

    def __contains__(self, note_id: object) -> bool:
        return note_id in self._unconfirmed or note_id in self._recent

    def __len__(self) -> int:
        return len(self._unconfirmed.keys() | self._recent.keys())
