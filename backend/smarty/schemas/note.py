"""
Note schemas.
"""
from datetime import datetime
from typing import Optional, List

from pydantic import field_validator

from smarty.schemas.common import CamelModel, ensure_utc
from smarty.schemas.category import Category


class NoteCreate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category_id: Optional[str] = None


class NoteUpdate(CamelModel):
    """Full replacement of a note's editable fields; unchanged fields must be resent."""
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    category_id: Optional[str] = None


class NoteDelete(CamelModel):
    id: Optional[str] = None


class Note(CamelModel):
    id: str
    title: str
    content: str = ""
    category_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class NoteWithCategory(Note):
    category: Optional[Category] = None


class NoteListResponse(CamelModel):
    notes: List[Note]


class NoteEnvelope(CamelModel):
    note: Note
