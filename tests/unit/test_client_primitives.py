"""
Client Primitive Unit Tests

Event channel, deletion guard, connectivity signal and auto-save
debouncer. No database or network involved.
"""

from __future__ import annotations

import asyncio

import pytest

from notesync.client.connectivity import ConnectivityMonitor
from notesync.client.debounce import AutoSaveDebouncer
from notesync.client.events import EventChannel, SyncEvent, SyncEventType
from notesync.client.guard import DeletionGuard

# ---------------------------------------------------------------------------
# Event channel
# ---------------------------------------------------------------------------


class TestEventChannel:
    def test_delivers_in_registration_order(self) -> None:
        channel = EventChannel()
        calls: list[str] = []
        channel.subscribe(lambda e: calls.append(f"first:{e.type}"))
        channel.subscribe(lambda e: calls.append(f"second:{e.type}"))

        channel.emit(SyncEvent(SyncEventType.SYNC_START))

        assert calls == ["first:SYNC_START", "second:SYNC_START"]

    def test_unsubscribe_stops_delivery(self) -> None:
        channel = EventChannel()
        received: list[SyncEvent] = []
        subscription = channel.subscribe(received.append)

        subscription.unsubscribe()
        channel.emit(SyncEvent(SyncEventType.SYNC_SUCCESS))

        assert received == []
        assert subscription.active is False
        assert len(channel) == 0

    def test_duplicate_subscription_is_ignored(self) -> None:
        channel = EventChannel()
        received: list[SyncEvent] = []

        channel.subscribe(received.append)
        channel.subscribe(received.append)
        channel.emit(SyncEvent(SyncEventType.SYNC_START))

        assert len(received) == 1

    def test_failing_listener_does_not_block_others(self) -> None:
        channel = EventChannel()
        received: list[SyncEvent] = []

        def broken(event: SyncEvent) -> None:
            raise ValueError("boom")

        channel.subscribe(broken)
        channel.subscribe(received.append)
        channel.emit(SyncEvent(SyncEventType.SYNC_ERROR))

        assert [e.type for e in received] == [SyncEventType.SYNC_ERROR]


# ---------------------------------------------------------------------------
# Deletion guard
# ---------------------------------------------------------------------------


class FakeTimer:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDeletionGuard:
    def test_marked_id_is_guarded_until_confirmed(self) -> None:
        timer = FakeTimer()
        guard = DeletionGuard(ttl=10, timer=timer)

        guard.mark("a")
        timer.now = 1_000  # far past the TTL

        assert "a" in guard
        assert guard.unconfirmed() == ["a"]

    def test_confirmed_id_expires_after_ttl(self) -> None:
        timer = FakeTimer()
        guard = DeletionGuard(ttl=10, timer=timer)
        guard.mark("a")

        timer.now = 5
        guard.confirm("a")
        timer.now = 14  # TTL restarts at confirmation
        assert "a" in guard
        assert guard.unconfirmed() == []

        timer.now = 16
        assert "a" not in guard

    def test_confirmed_ids_are_bounded(self) -> None:
        guard = DeletionGuard(ttl=60, maxsize=2, timer=FakeTimer())
        for note_id in ("a", "b", "c"):
            guard.mark(note_id)
            guard.confirm(note_id)

        assert len(guard) == 2
        assert "c" in guard

    def test_unconfirmed_listed_oldest_first(self) -> None:
        timer = FakeTimer()
        guard = DeletionGuard(timer=timer)
        for t, note_id in enumerate(("b", "a", "c")):
            timer.now = t
            guard.mark(note_id)

        assert guard.unconfirmed() == ["b", "a", "c"]

    def test_clear(self) -> None:
        guard = DeletionGuard()
        guard.mark("a")

        guard.clear()

        assert "a" not in guard
        assert len(guard) == 0


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class TestConnectivityMonitor:
    def test_listeners_hear_transitions_only(self) -> None:
        monitor = ConnectivityMonitor(online=True)
        seen: list[bool] = []
        monitor.subscribe(seen.append)

        monitor.set_online(True)
        monitor.set_online(False)
        monitor.set_online(False)
        monitor.set_online(True)

        assert seen == [False, True]
        assert monitor.is_online is True

    def test_unsubscribe(self) -> None:
        monitor = ConnectivityMonitor(online=False)
        seen: list[bool] = []
        unsubscribe = monitor.subscribe(seen.append)

        unsubscribe()
        monitor.set_online(True)

        assert seen == []


# ---------------------------------------------------------------------------
# Auto-save debouncer
# ---------------------------------------------------------------------------


class TestAutoSaveDebouncer:
    @pytest.mark.asyncio
    async def test_burst_of_edits_saves_once_with_last_value(self) -> None:
        debouncer = AutoSaveDebouncer(delay=0.05)
        saved: list[str] = []

        for text in ("h", "he", "hel", "hello"):
            debouncer.schedule(lambda text=text: _record(saved, text))
            await asyncio.sleep(0.01)

        await asyncio.sleep(0.1)

        assert saved == ["hello"]
        assert debouncer.pending is False

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_save(self) -> None:
        debouncer = AutoSaveDebouncer(delay=0.02)
        saved: list[str] = []

        debouncer.schedule(lambda: _record(saved, "x"))
        debouncer.cancel()
        await asyncio.sleep(0.05)

        assert saved == []

    @pytest.mark.asyncio
    async def test_flush_runs_pending_save_immediately(self) -> None:
        debouncer = AutoSaveDebouncer(delay=10)
        saved: list[str] = []

        debouncer.schedule(lambda: _record(saved, "now"))
        await debouncer.flush()

        assert saved == ["now"]
        assert debouncer.pending is False

    @pytest.mark.asyncio
    async def test_running_save_is_not_cancelled_by_new_edit(self) -> None:
        debouncer = AutoSaveDebouncer(delay=0.01)
        started = asyncio.Event()
        release = asyncio.Event()
        saved: list[str] = []

        async def slow_save() -> None:
            started.set()
            await release.wait()
            saved.append("slow")

        debouncer.schedule(slow_save)
        await started.wait()
        debouncer.schedule(lambda: _record(saved, "next"))
        release.set()
        await asyncio.sleep(0.05)

        assert saved == ["slow", "next"]


async def _record(saved: list[str], value: str) -> None:
    saved.append(value)
