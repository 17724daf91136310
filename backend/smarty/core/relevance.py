"""
Keyword relevance over notes.

This is plain substring matching on lower-cased text, used for search
fallbacks and for picking the notes that go into a chat prompt.
"""
from typing import List, Sequence, TypeVar

from smarty.schemas.note import Note

N = TypeVar("N", bound=Note)

RELATED_NOTES_LIMIT = 5
CONTEXT_PREVIEW_CHARS = 200
NO_NOTES_CONTEXT = "The user currently has no notes or no relevant notes found."


def matches_query(note: Note, query: str) -> bool:
    """Case-insensitive substring match over title and content."""
    needle = query.lower()
    return needle in note.title.lower() or needle in note.content.lower()


def filter_notes(notes: Sequence[N], query: str) -> List[N]:
    return [note for note in notes if matches_query(note, query)]


def query_terms(query: str) -> List[str]:
    """Lower-cased words of the query longer than two characters."""
    return [term for term in query.lower().split(" ") if len(term) > 2]


def _category_name(note: Note) -> str:
    category = getattr(note, "category", None)
    return category.name if category is not None else ""


def select_related_notes(
    notes: Sequence[N],
    query: str,
    limit: int = RELATED_NOTES_LIMIT,
) -> List[N]:
    """
    Pick notes whose title, content or category name contains any query term.

    Args:
        notes: Candidate notes, in display order
        query: Free text typed by the user
        limit: Maximum number of notes returned

    Returns:
        At most ``limit`` notes, preserving input order
    """
    if not query.strip():
        return []

    terms = query_terms(query)
    related = []
    for note in notes:
        haystack = f"{note.title} {note.content} {_category_name(note)}".lower()
        if any(term in haystack for term in terms):
            related.append(note)
            if len(related) >= limit:
                break
    return related


def build_notes_context(notes: Sequence[Note]) -> str:
    """Render notes as a plain-text block for a system prompt."""
    if not notes:
        return NO_NOTES_CONTEXT

    context = f"The user has {len(notes)} relevant notes:\n\n"
    for index, note in enumerate(notes, start=1):
        name = _category_name(note)
        category = f" [Category: {name}]" if name else ""
        date = note.created_at.strftime("%Y-%m-%d")
        preview = note.content[:CONTEXT_PREVIEW_CHARS]
        if len(note.content) > CONTEXT_PREVIEW_CHARS:
            preview += "..."
        context += f'{index}. "{note.title}"{category} ({date})\n'
        context += f"   Content: {preview}\n\n"

    return context
