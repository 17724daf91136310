"""
SQLAlchemy models.
"""
from smarty.models.note import NoteRow
from smarty.models.category import CategoryRow

__all__ = [
    "NoteRow",
    "CategoryRow",
]
