"""
Client-side join of notes to their categories.

The backend returns notes and categories as flat, independent collections,
so every change to either one re-runs this join.
"""
from typing import Dict, Iterable, List

from smarty.schemas.category import Category
from smarty.schemas.note import Note, NoteWithCategory


def index_categories(categories: Iterable[Category]) -> Dict[str, Category]:
    return {category.id: category for category in categories}


def enrich_note(note: Note, categories_by_id: Dict[str, Category]) -> NoteWithCategory:
    """Attach the referenced category, or None when it doesn't exist (any more)."""
    category = categories_by_id.get(note.category_id) if note.category_id else None
    return NoteWithCategory(**note.model_dump(exclude={"category"}), category=category)


def enrich_notes(notes: Iterable[Note], categories: Iterable[Category]) -> List[NoteWithCategory]:
    by_id = index_categories(categories)
    return [enrich_note(note, by_id) for note in notes]
