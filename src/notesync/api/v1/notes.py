"""
Notes API Router

REST surface of the reconciliation service. Every endpoint is scoped to
the principal resolved from the bearer token.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from notesync.core.database import get_db
from notesync.core.exceptions import NoteConflictError, NoteNotFoundError
from notesync.core.security import get_current_user_id
from notesync.schemas.notes import (
    DeleteResponse,
    NoteRecord,
    NoteUpdate,
    SyncRequest,
    SyncResponse,
)
from notesync.services.reconciliation import ReconciliationService

router = APIRouter()


def get_service(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> ReconciliationService:
    """FastAPI dependency: reconciliation service bound to the caller."""
    return ReconciliationService(db, user_id)


@router.get("/", response_model=list[NoteRecord])
async def list_notes(
    since: int = Query(0, ge=0, description="Epoch ms watermark (exclusive)"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    service: ReconciliationService = Depends(get_service),
):
    """List notes updated after ``since``, newest first."""
    return await service.list_since(since, include_deleted)


@router.post("/", response_model=NoteRecord, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteRecord,
    service: ReconciliationService = Depends(get_service),
):
    """
    Create a note with a client-generated id.

    Not idempotent: an existing id is rejected with 409. Use /sync for
    upsert semantics.
    """
    try:
        return await service.create(note)
    except NoteConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e


@router.post("/sync", response_model=SyncResponse)
async def sync_notes(
    request: SyncRequest,
    service: ReconciliationService = Depends(get_service),
):
    """
    Bulk sync: merge each client record by version.

    Rejected records come back in ``conflicts`` with both copies; they are
    data, not an error status.
    """
    result = await service.bulk_sync(request.notes)
    return SyncResponse(synced=result.synced, conflicts=result.conflicts)


@router.put("/{note_id}", response_model=NoteRecord)
async def update_note(
    note_id: str,
    patch: NoteUpdate,
    service: ReconciliationService = Depends(get_service),
):
    """Apply a partial update (no version arbitration)."""
    try:
        return await service.update(note_id, patch)
    except NoteNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Note not found"
        ) from e


@router.delete("/{note_id}", response_model=DeleteResponse)
async def delete_note(
    note_id: str,
    service: ReconciliationService = Depends(get_service),
):
    """Soft delete: the tombstone stays so other replicas learn about it."""
    try:
        await service.soft_delete(note_id)
    except NoteNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Note not found"
        ) from e
    return DeleteResponse()
