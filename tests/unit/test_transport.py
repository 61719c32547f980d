"""
Transport Unit Tests

RemoteNotesClient against httpx.MockTransport: request shape and the
mapping of failures onto the notesync error taxonomy.
"""

from __future__ import annotations

import json

import httpx
import pytest

from notesync.client.transport import RemoteNotesClient
from notesync.core.exceptions import (
    NoteConflictError,
    NoteNotFoundError,
    TransportError,
)
from notesync.schemas.notes import NoteRecord, NoteUpdate, SyncStatus

BASE = "http://notes.test/api/v1/notes"


def _client(handler) -> RemoteNotesClient:
    return RemoteNotesClient(base_url=BASE, transport=httpx.MockTransport(handler))


def _server_json(note_id: str = "a", version: int = 1, **extra) -> dict:
    data = {
        "id": note_id,
        "userId": "alice",
        "title": "T",
        "content": "",
        "createdAt": 1,
        "updatedAt": 2,
        "version": version,
        "deleted": False,
    }
    data.update(extra)
    return data


@pytest.mark.asyncio
async def test_list_sends_bearer_and_watermark() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[_server_json("a", deleted=True)])

    notes = await _client(handler).list_notes("tok", since=42, include_deleted=True)

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/api/v1/notes/"
    assert request.url.params["since"] == "42"
    assert request.url.params["includeDeleted"] == "true"
    assert request.headers["Authorization"] == "Bearer tok"
    assert notes[0].deleted is True
    assert notes[0].user_id == "alice"


@pytest.mark.asyncio
async def test_bulk_sync_strips_client_only_fields() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "synced": [_server_json("a", version=2)],
                "conflicts": [
                    {
                        "client": _server_json("b", version=1),
                        "server": _server_json("b", version=3),
                    }
                ],
            },
        )

    local = NoteRecord(
        id="a", version=2, sync_status=SyncStatus.PENDING, last_synced_at=99
    )
    result = await _client(handler).bulk_sync("tok", [local])

    sent = bodies[0]["notes"][0]
    assert sent["id"] == "a"
    assert sent["version"] == 2
    assert "syncStatus" not in sent
    assert "lastSyncedAt" not in sent
    assert "deleted" not in sent
    assert result.synced[0].version == 2
    assert result.conflicts[0].server.version == 3


@pytest.mark.asyncio
async def test_update_sends_only_set_fields() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=_server_json("a", title="new"))

    updated = await _client(handler).update_note("tok", "a", NoteUpdate(title="new"))

    assert bodies == [{"title": "new"}]
    assert updated.title == "new"


@pytest.mark.asyncio
async def test_not_found_and_conflict_statuses() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        status = 404 if request.method == "DELETE" else 409
        return httpx.Response(status, json={"detail": "nope"})

    client = _client(handler)

    with pytest.raises(NoteNotFoundError):
        await client.delete_note("tok", "ghost")
    with pytest.raises(NoteConflictError):
        await client.create_note("tok", NoteRecord(id="dup"))


@pytest.mark.asyncio
async def test_server_error_is_transport_error() -> None:
    client = _client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(TransportError):
        await client.bulk_sync("tok", [NoteRecord(id="a")])


@pytest.mark.asyncio
async def test_network_failure_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        await _client(handler).list_notes("tok")


@pytest.mark.asyncio
async def test_unauthorized_is_transport_error() -> None:
    client = _client(lambda request: httpx.Response(401, json={"detail": "no"}))

    with pytest.raises(TransportError):
        await client.list_notes("bad-token")


@pytest.mark.asyncio
async def test_non_json_body_is_transport_error() -> None:
    client = _client(
        lambda request: httpx.Response(200, text="<html>captive portal</html>")
    )

    with pytest.raises(TransportError):
        await client.list_notes("tok")
    with pytest.raises(TransportError):
        await client.bulk_sync("tok", [NoteRecord(id="a")])


@pytest.mark.asyncio
async def test_body_not_matching_schema_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"notes": "not a list"})
        return httpx.Response(200, json={"id": "a", "version": 0})

    client = _client(handler)

    with pytest.raises(TransportError):
        await client.list_notes("tok")
    with pytest.raises(TransportError):
        await client.update_note("tok", "a", NoteUpdate(title="x"))
