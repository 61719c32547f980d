"""
Note Schemas

Pydantic models for the note record and the sync wire format.
Python attributes are snake_case; the JSON encoding uses camelCase keys.
"""

import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    """Current wall clock as epoch milliseconds."""
    return int(time.time() * 1000)


class SyncStatus(StrEnum):
    """Client-only replication state of a local record."""

    PENDING = "pending"
    SYNCED = "synced"


class WireModel(BaseModel):
    """Base for JSON payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,  # Enables ORM model conversion
    )


class NoteRecord(WireModel):
    """
    The unit of replication.

    ``sync_status`` and ``last_synced_at`` only exist on the device;
    ``deleted`` is only ever set by the reconciliation service.
    """

    id: str = Field(..., min_length=1, max_length=64)
    user_id: str | None = None
    title: str = Field(default="Untitled Note", max_length=500)
    content: str = ""
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    version: int = Field(default=1, ge=1)
    sync_status: SyncStatus | None = None
    last_synced_at: int | None = None
    deleted: bool = False

    def to_wire(self) -> dict:
        """JSON payload pushed to the remote service (client-only fields stripped)."""
        return self.model_dump(
            by_alias=True,
            mode="json",
            exclude={"sync_status", "last_synced_at", "deleted"},
        )


class NoteUpdate(WireModel):
    """
    Request schema for PUT /notes/{id}.

    All fields optional to support partial updates. Only fields present in
    the payload are applied.
    """

    title: str | None = Field(None, max_length=500)
    content: str | None = None
    created_at: int | None = None
    updated_at: int | None = None
    version: int | None = Field(None, ge=1)


class SyncRequest(WireModel):
    """Request body for POST /notes/sync."""

    notes: list[NoteRecord] = Field(default_factory=list)


class SyncConflict(WireModel):
    """A client submission rejected because the server copy is ahead."""

    client: NoteRecord
    server: NoteRecord


class SyncResponse(WireModel):
    """Per-record outcome of a bulk sync."""

    synced: list[NoteRecord] = Field(default_factory=list)
    conflicts: list[SyncConflict] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    """Response for DELETE /notes/{id}."""

    message: str = "Note deleted"
