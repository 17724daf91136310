"""
Business logic for notes and categories.
"""
from smarty.services.notes import NoteService
from smarty.services.categories import CategoryService

__all__ = [
    "NoteService",
    "CategoryService",
]
