"""
Notes endpoints.

Update and delete carry the note id in the request body, not the path.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from smarty.api.deps import get_note_service
from smarty.schemas.common import MessageResponse
from smarty.schemas.note import (
    NoteCreate,
    NoteDelete,
    NoteEnvelope,
    NoteListResponse,
    NoteUpdate,
)
from smarty.services.notes import NoteService

router = APIRouter()


@router.get("", response_model=NoteListResponse)
async def list_notes(service: NoteService = Depends(get_note_service)):
    """List the caller's notes."""
    return NoteListResponse(notes=await service.list_notes())


@router.get("/search", response_model=NoteListResponse)
async def search_notes(
    q: str = Query("", description="Search in title and content"),
    service: NoteService = Depends(get_note_service),
):
    """Case-insensitive substring search."""
    return NoteListResponse(notes=await service.search_notes(q))


@router.post("", response_model=NoteEnvelope, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    service: NoteService = Depends(get_note_service),
):
    """Create a new note."""
    return NoteEnvelope(note=await service.create_note(note_data))


@router.put("", response_model=NoteEnvelope)
async def update_note(
    note_data: NoteUpdate,
    service: NoteService = Depends(get_note_service),
):
    """Replace a note's title, content and category."""
    return NoteEnvelope(note=await service.update_note(note_data))


@router.delete("", response_model=MessageResponse)
async def delete_note(
    note_data: Optional[NoteDelete] = None,
    service: NoteService = Depends(get_note_service),
):
    """Delete a note."""
    await service.delete_note(note_data.id if note_data else None)
    return MessageResponse(message="Note deleted.")
