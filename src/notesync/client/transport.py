"""
Remote Notes Transport

Async HTTP client for the reconciliation service.

Design:
    - One request per call via httpx (non-blocking), bearer credential
      supplied by the caller on every call.
    - A transport-level timeout is always imposed.
    - Failures are raised, never swallowed into empty results: an empty
      pull must mean "nothing changed", not "the server was down".
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from notesync.core.config import settings
from notesync.core.exceptions import (
    NoteConflictError,
    NoteNotFoundError,
    TransportError,
)
from notesync.schemas.notes import NoteRecord, NoteUpdate, SyncResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

_note_list = TypeAdapter(list[NoteRecord])


class RemoteNotes(Protocol):
    """Logical operations of the reconciliation service, as seen by a client."""

    async def list_notes(
        self, credential: str, since: int = 0, include_deleted: bool = False
    ) -> list[NoteRecord]: ...

    async def create_note(self, credential: str, record: NoteRecord) -> NoteRecord: ...

    async def update_note(
        self, credential: str, note_id: str, patch: NoteUpdate
    ) -> NoteRecord: ...

    async def delete_note(self, credential: str, note_id: str) -> None: ...

    async def bulk_sync(
        self, credential: str, records: Sequence[NoteRecord]
    ) -> SyncResponse: ...


class RemoteNotesClient:
    """
    httpx implementation of ``RemoteNotes``.

    Usage::

        remote = RemoteNotesClient("https://notes.example.com/api/v1/notes")
        result = await remote.bulk_sync(token, pending)

    Args:
        base_url: Notes collection URL (default from config).
        timeout: Request timeout in seconds (default from config).
        transport: Optional httpx transport (e.g. ``ASGITransport`` in tests).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.SYNC_API_URL).rstrip("/")
        self._timeout = timeout or settings.SYNC_HTTP_TIMEOUT
        self._transport = transport

    async def list_notes(
        self, credential: str, since: int = 0, include_deleted: bool = False
    ) -> list[NoteRecord]:
        """Remote records with ``updated_at > since``."""
        params: dict[str, Any] = {"since": since}
        if include_deleted:
            params["includeDeleted"] = "true"
        response = await self._request(credential, "GET", "/", params=params)
        return self._decode(response, _note_list.validate_python)

    async def create_note(self, credential: str, record: NoteRecord) -> NoteRecord:
        response = await self._request(
            credential, "POST", "/", note_id=record.id, json=record.to_wire()
        )
        return self._decode(response, NoteRecord.model_validate)

    async def update_note(
        self, credential: str, note_id: str, patch: NoteUpdate
    ) -> NoteRecord:
        response = await self._request(
            credential,
            "PUT",
            f"/{note_id}",
            note_id=note_id,
            json=patch.model_dump(by_alias=True, exclude_unset=True),
        )
        return self._decode(response, NoteRecord.model_validate)

    async def delete_note(self, credential: str, note_id: str) -> None:
        """Ask the service to tombstone a note."""
        await self._request(credential, "DELETE", f"/{note_id}", note_id=note_id)

    async def bulk_sync(
        self, credential: str, records: Sequence[NoteRecord]
    ) -> SyncResponse:
        """Push a batch; returns the synced records and the conflict pairs."""
        payload = {"notes": [record.to_wire() for record in records]}
        response = await self._request(credential, "POST", "/sync", json=payload)
        return self._decode(response, SyncResponse.model_validate)

    async def _request(
        self,
        credential: str,
        method: str,
        path: str,
        *,
        note_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one request and map failures onto the notesync taxonomy.

        Raises:
            NoteNotFoundError: 404 on an id-targeted call.
            NoteConflictError: 409 on an id-targeted call.
            TransportError: Network failure, timeout or any other error status.
        """
        headers = {"Authorization": f"Bearer {credential}"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, type(e).__name__)
            raise TransportError(f"{method} {path} failed: {e}") from e

        if note_id is not None and response.status_code == 404:
            raise NoteNotFoundError(note_id)
        if note_id is not None and response.status_code == 409:
            raise NoteConflictError(note_id)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Notes API error %d: %s", response.status_code, response.text)
            raise TransportError(
                f"{method} {path} returned {response.status_code}"
            ) from e
        return response

    @staticmethod
    def _decode(response: httpx.Response, parse: Callable[[Any], T]) -> T:
        """
        Parse a 2xx body.

        Raises:
            TransportError: Body is not JSON or does not match the schema
                (captive portal, proxy error page, incompatible server).
        """
        try:
            return parse(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "Unexpected response body from %s: %s",
                response.request.url,
                type(e).__name__,
            )
            raise TransportError(
                f"Malformed response from {response.request.url.path}"
            ) from e
