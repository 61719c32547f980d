"""Sync client package - device replica, orchestrator and transport."""

from notesync.client.connectivity import ConnectivityMonitor
from notesync.client.debounce import AutoSaveDebouncer
from notesync.client.events import EventChannel, Subscription, SyncEvent, SyncEventType
from notesync.client.guard import DeletionGuard
from notesync.client.orchestrator import RoundStatus, SyncOrchestrator, SyncOutcome
from notesync.client.session import NoteSession
from notesync.client.store import LocalStore, SqlLocalStore, create_local_store
from notesync.client.transport import RemoteNotes, RemoteNotesClient

__all__ = [
    "AutoSaveDebouncer",
    "ConnectivityMonitor",
    "DeletionGuard",
    "EventChannel",
    "LocalStore",
    "NoteSession",
    "RemoteNotes",
    "RemoteNotesClient",
    "RoundStatus",
    "SqlLocalStore",
    "Subscription",
    "SyncEvent",
    "SyncEventType",
    "SyncOrchestrator",
    "SyncOutcome",
    "create_local_store",
]
