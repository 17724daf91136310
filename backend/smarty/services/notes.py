"""
Note service: validation and ownership rules on top of a repository.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import HTTPException, status

from smarty.core.relevance import filter_notes
from smarty.repositories.base import Repository
from smarty.schemas.common import utcnow
from smarty.schemas.note import Note, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class NoteService:
    """Notes owned by a single user."""

    def __init__(self, repo: Repository[Note], user_id: str):
        self.repo = repo
        self.user_id = user_id

    async def list_notes(self) -> List[Note]:
        return await self.repo.list(self.user_id)

    async def search_notes(self, query: str) -> List[Note]:
        """Case-insensitive substring search over title and content."""
        return filter_notes(await self.list_notes(), query)

    async def get_owned(self, note_id: str) -> Note:
        note = await self.repo.get(note_id)
        if note is None or note.user_id != self.user_id:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Note not found",
            )
        return note

    async def create_note(self, data: NoteCreate) -> Note:
        if _blank(data.title) or _blank(data.content):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Title and content are required",
            )

        now = utcnow()
        note = Note(
            id=str(uuid.uuid4()),
            title=data.title.strip(),
            content=data.content.strip(),
            category_id=data.category_id or None,
            user_id=self.user_id,
            created_at=now,
            updated_at=now,
        )
        await self.repo.put(note)
        logger.debug("Created note %s for %s", note.id, self.user_id)
        return note

    async def update_note(self, data: NoteUpdate) -> Note:
        """Replace title, content and category of an existing note."""
        if not data.id or _blank(data.title) or _blank(data.content):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="ID, title, and content are required",
            )

        existing = await self.get_owned(data.id)
        note = existing.model_copy(
            update={
                "title": data.title.strip(),
                "content": data.content.strip(),
                "category_id": data.category_id or None,
                "updated_at": max(utcnow(), existing.updated_at),
            }
        )
        await self.repo.put(note)
        return note

    async def delete_note(self, note_id: Optional[str]) -> None:
        if not note_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Note ID is required",
            )

        await self.get_owned(note_id)
        await self.repo.delete(note_id)
        logger.debug("Deleted note %s for %s", note_id, self.user_id)
