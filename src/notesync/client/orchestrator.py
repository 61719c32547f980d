"""
Sync Orchestrator

Drives synchronization rounds between the device replica and the
reconciliation service.

Round protocol (push before pull):
    1. **Deletions**: guarded ids not yet tombstoned remotely are deleted.
    2. **Push**: pending local records (minus guarded ids) go to bulk sync.
       Accepted records are written back as synced; rejected ones are
       reported in one CONFLICTS_DETECTED event and left pending.
    3. **Pull**: remote records newer than the sync watermark are merged:
       - guarded ids and ids rejected in step 2 are skipped
       - absent locally -> insert as synced
       - local older and synced -> overwrite
       - local older and pending -> CONFLICT_DETECTED, local edit kept
       - local at least as new -> ignored

Version is the only conflict signal. Conflicts are surfaced, never merged.

Concurrency:
    At most one round is in flight per orchestrator. Rounds suspend at
    every store and network call, and the user may edit notes meanwhile:
    write-backs are conditional on the local record being unchanged since
    it was read, so a save made mid-round is never overwritten.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from notesync.client.connectivity import ConnectivityMonitor
from notesync.client.events import (
    EventChannel,
    Listener,
    Subscription,
    SyncEvent,
    SyncEventType,
)
from notesync.client.guard import DeletionGuard
from notesync.client.store import LocalStore
from notesync.client.transport import RemoteNotes
from notesync.core.exceptions import NoteNotFoundError, NoteSyncError
from notesync.schemas.notes import NoteRecord, SyncConflict, SyncStatus, now_ms

logger = logging.getLogger(__name__)


class RoundStatus(StrEnum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SyncOutcome:
    """Summary of one ``run_once`` call."""

    status: RoundStatus
    deletions_pushed: int = 0
    pushed: int = 0
    pulled: int = 0
    purged: int = 0
    push_conflicts: list[SyncConflict] = field(default_factory=list)
    pull_conflicts: list[tuple[NoteRecord, NoteRecord]] = field(default_factory=list)
    error: Exception | None = None


class SyncOrchestrator:
    """
    One orchestrator per active credential, owned by the session that
    created it.

    Args:
        store: Device replica.
        remote: Reconciliation service client.
        connectivity: Online/offline signal.
        deletion_guard: Locally deleted ids (a fresh guard by default).
        clock: Epoch-ms clock used for ``last_synced_at``.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteNotes,
        connectivity: ConnectivityMonitor,
        *,
        deletion_guard: DeletionGuard | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._remote = remote
        self._connectivity = connectivity
        self._guard = deletion_guard if deletion_guard is not None else DeletionGuard()
        self._clock = clock
        self._events = EventChannel()
        self._is_syncing = False
        self._periodic_task: asyncio.Task | None = None
        self._rounds: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_syncing(self) -> bool:
        return self._is_syncing

    @property
    def is_periodic(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    @property
    def deletion_guard(self) -> DeletionGuard:
        return self._guard

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Subscription:
        """Register an event listener (UI feedback only)."""
        return self._events.subscribe(listener)

    def mark_deleted_locally(self, note_id: str) -> None:
        """Never let a sync round write ``note_id`` back into the replica."""
        self._guard.mark(note_id)

    def start_periodic(self, credential: str, interval: float) -> None:
        """
        Run a round now, then every ``interval`` seconds while online.

        Calling it again replaces the previous timer.
        """
        self.stop_periodic()
        self._periodic_task = asyncio.get_running_loop().create_task(
            self._periodic_loop(credential, interval)
        )
        logger.info("Periodic sync started (every %.1fs)", interval)

    def stop_periodic(self) -> None:
        """Cancel the timer. An in-flight round still runs to completion."""
        task, self._periodic_task = self._periodic_task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Periodic sync stopped")

    async def run_once(self, credential: str) -> SyncOutcome:
        """
        Run one push-then-pull round.

        Skipped (no events) when a round is already in flight or the
        device is offline. Failures are reported as SYNC_ERROR and in the
        returned outcome; they are never raised.
        """
        if self._is_syncing:
            logger.debug("Sync round already in flight, skipping")
            return SyncOutcome(status=RoundStatus.SKIPPED)
        if not self._connectivity.is_online:
            logger.debug("Offline, skipping sync round")
            return SyncOutcome(status=RoundStatus.SKIPPED)

        self._is_syncing = True
        outcome = SyncOutcome(status=RoundStatus.COMPLETED)
        try:
            self._events.emit(SyncEvent(SyncEventType.SYNC_START))
            # Watermark of the last completed sync, taken before this round
            # stamps anything
            watermark = await self._watermark()
            await self._push_deletions(credential, outcome)
            rejected = await self._push(credential, outcome)
            await self._pull(credential, watermark, rejected, outcome)
        except NoteSyncError as e:
            logger.error("Sync round failed: %s", e)
            outcome.status = RoundStatus.FAILED
            outcome.error = e
            self._events.emit(SyncEvent(SyncEventType.SYNC_ERROR, error=e))
        else:
            logger.info(
                "Sync round done: %d pushed, %d pulled, %d purged, %d conflicts",
                outcome.pushed,
                outcome.pulled,
                outcome.purged,
                len(outcome.push_conflicts) + len(outcome.pull_conflicts),
            )
            self._events.emit(SyncEvent(SyncEventType.SYNC_SUCCESS))
        finally:
            self._is_syncing = False
        return outcome

    # ------------------------------------------------------------------
    # Round phases
    # ------------------------------------------------------------------

    async def _watermark(self) -> int:
        records = await self._store.get_all()
        return max((r.last_synced_at or 0 for r in records), default=0)

    async def _push_deletions(self, credential: str, outcome: SyncOutcome) -> None:
        for note_id in self._guard.unconfirmed():
            try:
                await self._remote.delete_note(credential, note_id)
            except NoteNotFoundError:
                # Never reached the server: nothing to tombstone
                logger.debug("Deleted note %s unknown remotely", note_id)
            self._guard.confirm(note_id)
            outcome.deletions_pushed += 1

    async def _push(self, credential: str, outcome: SyncOutcome) -> set[str]:
        """Push pending records. Returns the ids the service rejected."""
        pending = await self._store.get_by_status(SyncStatus.PENDING)
        batch = [r for r in pending if r.id not in self._guard]
        if not batch:
            return set()

        result = await self._remote.bulk_sync(credential, batch)

        for record in result.synced:
            if record.id in self._guard:
                continue
            local = await self._store.get(record.id)
            if local is None:
                # Removed while the request was in flight (logout, delete)
                continue
            if local.version > record.version:
                # Edited while the request was in flight: stays pending
                continue
            if record.deleted:
                # Tombstoned elsewhere; our accepted write does not revive it
                if await self._store.delete_if_unchanged(local):
                    outcome.purged += 1
                continue
            # Skipped if the user saved again since the re-read
            if await self._store.put_if_unchanged(self._as_synced(record), local):
                outcome.pushed += 1

        if result.conflicts:
            outcome.push_conflicts.extend(result.conflicts)
            logger.warning(
                "Push rejected %d notes (server ahead)", len(result.conflicts)
            )
            self._events.emit(
                SyncEvent(
                    SyncEventType.CONFLICTS_DETECTED,
                    conflicts=tuple(result.conflicts),
                )
            )
        return {c.client.id for c in result.conflicts}

    async def _pull(
        self,
        credential: str,
        watermark: int,
        rejected: set[str],
        outcome: SyncOutcome,
    ) -> None:
        remote_records = await self._remote.list_notes(
            credential, since=watermark, include_deleted=True
        )

        for remote in remote_records:
            if remote.id in self._guard or remote.id in rejected:
                continue

            local = await self._store.get(remote.id)
            if local is None:
                if not remote.deleted and await self._store.put_if_unchanged(
                    self._as_synced(remote), None
                ):
                    outcome.pulled += 1
            elif local.version < remote.version:
                if local.sync_status == SyncStatus.PENDING:
                    outcome.pull_conflicts.append((local, remote))
                    self._events.emit(
                        SyncEvent(
                            SyncEventType.CONFLICT_DETECTED,
                            local=local,
                            remote=remote,
                        )
                    )
                elif remote.deleted:
                    if await self._store.delete_if_unchanged(local):
                        outcome.purged += 1
                elif await self._store.put_if_unchanged(
                    self._as_synced(remote), local
                ):
                    outcome.pulled += 1

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _as_synced(self, record: NoteRecord) -> NoteRecord:
        return record.model_copy(
            update={
                "sync_status": SyncStatus.SYNCED,
                "last_synced_at": self._clock(),
                "deleted": False,
            }
        )

    async def _periodic_loop(self, credential: str, interval: float) -> None:
        while True:
            if self._connectivity.is_online:
                # Shielded so that stop_periodic never interrupts a round
                round_task = asyncio.ensure_future(self._safe_round(credential))
                self._rounds.add(round_task)
                round_task.add_done_callback(self._rounds.discard)
                await asyncio.shield(round_task)
            await asyncio.sleep(interval)

    async def _safe_round(self, credential: str) -> None:
        try:
            await self.run_once(credential)
        except Exception:
            logger.exception("Unexpected error in periodic sync round")
