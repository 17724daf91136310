"""
API routers for Smarty.
"""
from smarty.api import notes, categories, chat

__all__ = [
    "notes",
    "categories",
    "chat",
]
