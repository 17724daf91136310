"""
Core chat and relevance logic for Smarty.
"""
from smarty.core.relevance import select_related_notes, build_notes_context, filter_notes

__all__ = [
    "select_related_notes",
    "build_notes_context",
    "filter_notes",
]
