"""
Chat schemas.
"""
from typing import Optional, List, Literal

from smarty.schemas.common import CamelModel
from smarty.schemas.note import Note

Role = Literal["user", "assistant", "system"]


class ChatMessage(CamelModel):
    role: Role
    content: str
    id: Optional[str] = None  # local key for UI lists


class ChatRequest(CamelModel):
    messages: Optional[List[ChatMessage]] = None


class ChatResponse(CamelModel):
    content: str
    related_notes: List[Note] = []
