"""
Pydantic schemas shared by the API and the client layer.
"""
from smarty.schemas.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategoryDelete,
    CategoryListResponse,
    CategoryEnvelope,
)
from smarty.schemas.chat import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
)
from smarty.schemas.common import MessageResponse, ErrorResponse
from smarty.schemas.note import (
    Note,
    NoteCreate,
    NoteUpdate,
    NoteDelete,
    NoteWithCategory,
    NoteListResponse,
    NoteEnvelope,
)

__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryDelete",
    "CategoryListResponse",
    "CategoryEnvelope",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "MessageResponse",
    "ErrorResponse",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteDelete",
    "NoteWithCategory",
    "NoteListResponse",
    "NoteEnvelope",
]
