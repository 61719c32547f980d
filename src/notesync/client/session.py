"""
Note Session

Client-side owner of everything tied to one signed-in credential: the
device replica, the orchestrator, the connectivity subscription and the
auto-save debouncer. The editing UI talks to this class only.
"""

from __future__ import annotations

import asyncio
import logging
import uuid

from notesync.client.connectivity import ConnectivityMonitor
from notesync.client.debounce import AutoSaveDebouncer
from notesync.client.guard import DeletionGuard
from notesync.client.orchestrator import SyncOrchestrator, SyncOutcome
from notesync.client.store import LocalStore
from notesync.client.transport import RemoteNotes
from notesync.core.config import Settings, settings
from notesync.core.exceptions import NoteNotFoundError
from notesync.schemas.notes import NoteRecord, SyncStatus, now_ms

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Note"


class NoteSession:
    """
    One signed-in user on one device.

    Usage::

        session = NoteSession(token, user_id, store, RemoteNotesClient())
        session.start()
        note = await session.create_note()
        session.edit_note(note.id, content="<p>draft</p>")  # debounced
        await session.logout()
    """

    def __init__(
        self,
        credential: str,
        user_id: str,
        store: LocalStore,
        remote: RemoteNotes,
        connectivity: ConnectivityMonitor | None = None,
        *,
        config: Settings | None = None,
    ) -> None:
        self._config = config or settings
        self._credential = credential
        self.user_id = user_id
        self.store = store
        self.connectivity = connectivity or ConnectivityMonitor()
        self.orchestrator = SyncOrchestrator(
            store,
            remote,
            self.connectivity,
            deletion_guard=DeletionGuard(
                ttl=self._config.DELETION_GUARD_TTL_SECONDS,
                maxsize=self._config.DELETION_GUARD_MAXSIZE,
            ),
        )
        self._debouncer = AutoSaveDebouncer(self._config.AUTOSAVE_DELAY_SECONDS)
        self._pending_edits: dict[str, dict[str, str]] = {}
        self._background: set[asyncio.Task] = set()
        self._unsubscribe_connectivity = self.connectivity.subscribe(
            self._on_connectivity_change
        )

    def start(self) -> None:
        """Begin periodic sync (first round runs immediately)."""
        self.orchestrator.start_periodic(
            self._credential, self._config.SYNC_INTERVAL_SECONDS
        )

    async def sync_now(self) -> SyncOutcome:
        """Manual trigger. No-op while offline or while a round is running."""
        return await self.orchestrator.run_once(self._credential)

    async def list_notes(self) -> list[NoteRecord]:
        """Local notes for display, most recently updated first."""
        notes = await self.store.get_all()
        return sorted(notes, key=lambda n: n.updated_at, reverse=True)

    async def create_note(
        self, title: str = DEFAULT_TITLE, content: str = ""
    ) -> NoteRecord:
        """Create a note locally (version 1, pending)."""
        now = now_ms()
        note = NoteRecord(
            id=str(uuid.uuid4()),
            user_id=self.user_id,
            title=title or DEFAULT_TITLE,
            content=content,
            created_at=now,
            updated_at=now,
            version=1,
            sync_status=SyncStatus.PENDING,
        )
        await self.store.put(note)
        logger.info("Created note %s", note.id)
        return note

    def edit_note(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> None:
        """
        Record an edit; the save and sync run once edits quiesce.

        Edits accumulate per note until the save runs, so a title change
        followed by a content change (or edits to several notes) inside
        one window are all kept.
        """
        changes = self._pending_edits.setdefault(note_id, {})
        if title is not None:
            changes["title"] = title
        if content is not None:
            changes["content"] = content
        self._debouncer.schedule(self._save_pending)

    async def save_note(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> NoteRecord:
        """
        Persist an edit now: bump the version, mark pending, then sync.

        Debounced edits still waiting for this note are saved with it;
        explicit arguments take precedence.

        Raises:
            NoteNotFoundError: The note is not in the local store.
        """
        updated = await self._apply_edit(note_id, title=title, content=content)
        await self.sync_now()
        return updated

    async def delete_note(self, note_id: str) -> None:
        """
        Delete locally right away; the remote tombstone follows on the
        next successful round.
        """
        self._pending_edits.pop(note_id, None)
        self.orchestrator.mark_deleted_locally(note_id)
        await self.store.delete(note_id)
        logger.info("Deleted note %s locally", note_id)
        await self.sync_now()

    async def flush(self) -> None:
        """Save debounced edits immediately (e.g. before switching notes)."""
        await self._debouncer.flush()

    async def logout(self) -> None:
        """Stop syncing and wipe the device replica."""
        self.orchestrator.stop_periodic()
        self._debouncer.cancel()
        self._pending_edits.clear()
        self._unsubscribe_connectivity()
        await self.store.clear()
        logger.info("Session for %s closed", self.user_id)

    async def _apply_edit(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> NoteRecord:
        edits = self._pending_edits.pop(note_id, {})
        if title is not None:
            edits["title"] = title
        if content is not None:
            edits["content"] = content

        current = await self.store.get(note_id)
        if current is None:
            raise NoteNotFoundError(note_id)

        changes: dict = {
            "updated_at": now_ms(),
            "version": current.version + 1,
            "sync_status": SyncStatus.PENDING,
        }
        if "title" in edits:
            changes["title"] = edits["title"] or DEFAULT_TITLE
        if "content" in edits:
            changes["content"] = edits["content"]
        updated = current.model_copy(update=changes)
        await self.store.put(updated)
        return updated

    async def _save_pending(self) -> None:
        """Debounced save: write every accumulated edit, then one sync round."""
        for note_id in list(self._pending_edits):
            try:
                await self._apply_edit(note_id)
            except NoteNotFoundError:
                logger.warning("Dropping edit for missing note %s", note_id)
        await self.sync_now()

    def _on_connectivity_change(self, online: bool) -> None:
        if not online:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Back online outside an event loop, waiting for timer")
            return
        task = loop.create_task(self.sync_now())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
