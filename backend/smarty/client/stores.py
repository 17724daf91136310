"""
Client state stores for notes, categories and chat.

Each store keeps the last collection fetched from the backend plus
``is_loading`` and ``error`` flags, and notifies subscribers after every
change. Mutations wait for the backend's response and then apply it; nothing
is predicted ahead of the round trip.

Mutations of the same entity id run one at a time, in call order, so an
update racing a delete cannot bring a deleted note back.
A notes fetch that was in flight when a delete finished drops the deleted
note from its result.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, asdict
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set

from pydantic import ValidationError

from smarty.client.cache import JsonStateCache
from smarty.client.enrichment import enrich_note, enrich_notes, index_categories
from smarty.client.errors import ApiError
from smarty.client.fallback import FallbackChain, TryNext, always, try_next_on
from smarty.client.gateway import SmartyGateway, TokenProvider
from smarty.core.fallback import canned_chat
from smarty.core.prompts import (
    NO_NOTES_TO_ORGANIZE,
    NO_NOTES_TO_SUMMARIZE,
    ORGANIZE_REQUEST,
    SMARTY_SYSTEM_PROMPT,
    SUMMARY_REQUEST,
    notes_context_prompt,
    organize_prompt,
    summary_prompt,
)
from smarty.core.relevance import build_notes_context, matches_query, select_related_notes
from smarty.schemas.category import Category
from smarty.schemas.chat import ChatMessage
from smarty.schemas.note import NoteCreate, NoteUpdate, NoteWithCategory

logger = logging.getLogger(__name__)

Listener = Callable[[], None]
LocalAssistant = Callable[[List[Dict[str, str]]], Awaitable[str]]

SORT_KEYS = ("created_at", "updated_at", "title", "category")
SORT_DIRECTIONS = ("asc", "desc")
CONTEXT_FALLBACK_NOTES = 10


class Store:
    """Loading/error flags, change listeners and per-entity serialization."""

    def __init__(self):
        self.is_loading = False
        self.error: Optional[str] = None
        self._listeners: List[Listener] = []
        self._locks: Dict[str, asyncio.Lock] = {}
        # Tasks holding or waiting on each lock
        self._lock_users: Dict[str, int] = {}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        for name, value in changes.items():
            setattr(self, name, value)
        for listener in list(self._listeners):
            listener()

    def clear_error(self) -> None:
        self._set(error=None)

    @asynccontextmanager
    async def _serialized(self, entity_id: str):
        lock = self._locks.setdefault(entity_id, asyncio.Lock())
        self._lock_users[entity_id] = self._lock_users.get(entity_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[entity_id] -= 1
            if not self._lock_users[entity_id]:
                del self._lock_users[entity_id]
                del self._locks[entity_id]


@dataclass
class NoteFilters:
    search_query: Optional[str] = None
    category_id: Optional[str] = None


def filter_notes_view(notes: Sequence[NoteWithCategory], filters: NoteFilters) -> List[NoteWithCategory]:
    visible = []
    for note in notes:
        if filters.category_id and note.category_id != filters.category_id:
            continue
        if filters.search_query and not matches_query(note, filters.search_query):
            continue
        visible.append(note)
    return visible


def _sort_value(note: NoteWithCategory, sort_by: str):
    if sort_by == "title":
        return note.title.lower()
    if sort_by == "category":
        return note.category.name.lower() if note.category else ""
    return getattr(note, sort_by)


def sort_notes_view(notes: Sequence[NoteWithCategory], sort_by: str, direction: str) -> List[NoteWithCategory]:
    if sort_by not in SORT_KEYS:
        return list(notes)
    return sorted(notes, key=lambda note: _sort_value(note, sort_by), reverse=direction == "desc")


class CategoriesStore(Store):

    def __init__(self, gateway: SmartyGateway, get_token: TokenProvider):
        super().__init__()
        self.gateway = gateway
        self.get_token = get_token
        self.categories: List[Category] = []

    async def fetch_categories(self) -> None:
        self._set(is_loading=True, error=None)
        try:
            categories = await self.gateway.list_categories(self.get_token)
        except ApiError as e:
            self._set(error=str(e) or "Failed to fetch categories", is_loading=False)
            return
        self._set(categories=categories, is_loading=False)

    async def create_category(self, name: str, color: Optional[str] = None) -> Category:
        self._set(is_loading=True, error=None)
        try:
            category = await self.gateway.create_category(name, self.get_token, color=color)
        except ApiError as e:
            self._set(error=str(e) or "Failed to create category", is_loading=False)
            raise
        self._set(categories=[category, *self.categories], is_loading=False)
        return category

    async def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        async with self._serialized(category_id):
            self._set(is_loading=True, error=None)
            try:
                updated = await self.gateway.update_category(category_id, self.get_token, name=name, color=color)
            except ApiError as e:
                self._set(error=str(e) or "Failed to update category", is_loading=False)
                raise
            categories = [updated if c.id == updated.id else c for c in self.categories]
            self._set(categories=categories, is_loading=False)
            return updated

    async def delete_category(self, category_id: str) -> None:
        async with self._serialized(category_id):
            self._set(is_loading=True, error=None)
            try:
                await self.gateway.delete_category(category_id, self.get_token)
            except ApiError as e:
                self._set(error=str(e) or "Failed to delete category", is_loading=False)
                raise
            categories = [c for c in self.categories if c.id != category_id]
            self._set(categories=categories, is_loading=False)


class NotesStore(Store):
    """
    Notes joined to their categories, plus the filtered and sorted view.

    ``categories`` is an accessor for the current category collection; it is
    read on every fetch and mutation to re-run the join.
    """

    def __init__(
        self,
        gateway: SmartyGateway,
        get_token: TokenProvider,
        categories: Callable[[], Sequence[Category]] = lambda: [],
        cache: Optional[JsonStateCache] = None,
    ):
        super().__init__()
        self.gateway = gateway
        self.get_token = get_token
        self.categories = categories
        self.cache = cache
        self.notes: List[NoteWithCategory] = []
        self.selected_note: Optional[NoteWithCategory] = None
        self.search_results: List[NoteWithCategory] = []
        self.filters = NoteFilters()
        self.sort_by = "updated_at"
        self.sort_direction = "desc"
        self._fetches_in_flight = 0
        self._deleted_during_fetch: Set[str] = set()

    @property
    def visible_notes(self) -> List[NoteWithCategory]:
        filtered = filter_notes_view(self.notes, self.filters)
        return sort_notes_view(filtered, self.sort_by, self.sort_direction)

    def _set(self, **changes) -> None:
        super()._set(**changes)
        if self.cache is not None and changes.keys() & {"notes", "filters", "sort_by", "sort_direction"}:
            self.persist()

    def persist(self) -> None:
        self.cache.save({
            "notes": [note.model_dump(mode="json", by_alias=True, exclude={"category"}) for note in self.notes],
            "filters": asdict(self.filters),
            "sort_by": self.sort_by,
            "sort_direction": self.sort_direction,
        })

    def hydrate(self) -> None:
        """Restore notes, filters and sort order from the cache."""
        if self.cache is None:
            return
        state = self.cache.load()
        items = state.get("notes")
        notes = []
        for item in items if isinstance(items, list) else []:
            try:
                notes.append(NoteWithCategory.model_validate(item))
            except ValidationError as e:
                logger.warning("Dropping cached note that no longer validates: %s", e)
        filters = state.get("filters")
        if not isinstance(filters, dict):
            filters = {}
        self._set(
            notes=enrich_notes(notes, self.categories()),
            filters=NoteFilters(
                search_query=filters.get("search_query"),
                category_id=filters.get("category_id"),
            ),
            sort_by=state.get("sort_by", self.sort_by),
            sort_direction=state.get("sort_direction", self.sort_direction),
        )

    async def fetch_notes(self) -> None:
        self._set(is_loading=True, error=None)
        self._fetches_in_flight += 1
        try:
            notes = await self.gateway.list_notes(self.get_token)
        except ApiError as e:
            if e.is_unavailable:
                # Endpoint not there yet: show an empty list, not an error
                logger.info("Notes endpoint unavailable, showing no notes: %s", e)
                self._set(notes=[], is_loading=False, error=None)
            else:
                self._set(error=str(e) or "Failed to fetch notes", is_loading=False)
            return
        finally:
            self._fetches_in_flight -= 1
            deleted = set(self._deleted_during_fetch)
            if not self._fetches_in_flight:
                self._deleted_during_fetch.clear()

        notes = [note for note in notes if note.id not in deleted]
        self._set(notes=enrich_notes(notes, self.categories()), is_loading=False)

    def refresh_categories(self) -> None:
        """Re-join the current notes against the current categories."""
        by_id = index_categories(self.categories())
        selected = self.selected_note
        notes = [enrich_note(note, by_id) for note in self.notes]
        if selected is not None:
            selected = next((note for note in notes if note.id == selected.id), None)
        self._set(notes=notes, selected_note=selected)

    async def create_note(self, data: NoteCreate) -> NoteWithCategory:
        self._set(is_loading=True, error=None)
        try:
            created = await self.gateway.create_note(data, self.get_token)
        except ApiError as e:
            self._set(error=str(e) or "Failed to create note", is_loading=False)
            raise
        note = enrich_note(created, index_categories(self.categories()))
        self._set(notes=[note, *self.notes], is_loading=False)
        return note

    async def update_note(self, data: NoteUpdate) -> Optional[NoteWithCategory]:
        """
        Send a full replacement of a note and apply the server's copy.

        Returns the updated note, or None if the note left the collection
        while the request was in flight.
        """
        async with self._serialized(data.id):
            self._set(is_loading=True, error=None)
            try:
                updated = await self.gateway.update_note(data, self.get_token)
            except ApiError as e:
                self._set(error=str(e) or "Failed to update note", is_loading=False)
                raise

            note = enrich_note(updated, index_categories(self.categories()))
            if not any(existing.id == note.id for existing in self.notes):
                self._set(is_loading=False)
                return None

            notes = [note if existing.id == note.id else existing for existing in self.notes]
            selected = self.selected_note
            if selected is not None and selected.id == note.id:
                selected = note
            self._set(notes=notes, selected_note=selected, is_loading=False)
            return note

    async def delete_note(self, note_id: str) -> None:
        async with self._serialized(note_id):
            self._set(is_loading=True, error=None)
            try:
                await self.gateway.delete_note(note_id, self.get_token)
            except ApiError as e:
                self._set(error=str(e) or "Failed to delete note", is_loading=False)
                raise

            if self._fetches_in_flight:
                self._deleted_during_fetch.add(note_id)
            selected = self.selected_note
            if selected is not None and selected.id == note_id:
                selected = None
            notes = [note for note in self.notes if note.id != note_id]
            self._set(notes=notes, selected_note=selected, is_loading=False)

    async def search_notes(self, query: str) -> List[NoteWithCategory]:
        self._set(is_loading=True, error=None)
        try:
            found = await self.gateway.search_notes(query, self.get_token)
        except ApiError as e:
            self._set(error=str(e) or "Failed to search notes", is_loading=False, search_results=[])
            return []
        results = enrich_notes(found, self.categories())
        self._set(search_results=results, is_loading=False)
        return results

    def set_selected_note(self, note: Optional[NoteWithCategory]) -> None:
        self._set(selected_note=note)

    def set_filters(self, search_query: Optional[str] = None, category_id: Optional[str] = None) -> None:
        self._set(filters=NoteFilters(search_query=search_query, category_id=category_id))

    def clear_filters(self) -> None:
        self._set(filters=NoteFilters())

    def set_sorting(self, sort_by: str, direction: str = "desc") -> None:
        if sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {direction}")
        self._set(sort_by=sort_by, sort_direction=direction)


async def canned_assistant(messages: List[Dict[str, str]]) -> str:
    return canned_chat(messages)


def _new_id() -> str:
    return uuid.uuid4().hex


class ChatStore(Store):
    """
    Conversation with the assistant.

    Replies come from the backend when a token provider is available, and
    from ``local_assistant`` otherwise or when the backend call fails.
    """

    def __init__(
        self,
        gateway: SmartyGateway,
        get_token: Optional[TokenProvider] = None,
        notes: Callable[[], Sequence[NoteWithCategory]] = lambda: [],
        local_assistant: LocalAssistant = canned_assistant,
    ):
        super().__init__()
        self.gateway = gateway
        self.get_token = get_token
        self.notes = notes
        self.local_assistant = local_assistant
        self.messages: List[ChatMessage] = []
        self.related_notes: List[NoteWithCategory] = []
        self.is_open = False

    async def _from_backend(self, messages: List[ChatMessage]):
        reply = await self.gateway.send_chat_message(messages, self.get_token)
        if not reply.content:
            return TryNext("Empty response from backend")
        return reply.content

    async def _from_local(self, messages: List[ChatMessage]) -> str:
        return await self.local_assistant([{"role": m.role, "content": m.content} for m in messages])

    async def _reply(self, backend_messages: List[ChatMessage], local_messages: List[ChatMessage]) -> str:
        strategies = []
        if self.get_token is not None:
            strategies.append(("backend", lambda: try_next_on(
                lambda: self._from_backend(backend_messages), always)))
        strategies.append(("local assistant", lambda: self._from_local(local_messages)))
        return await FallbackChain(strategies).run()

    async def _converse(
        self,
        content: str,
        system_prompt: Optional[str],
        related: Optional[List[NoteWithCategory]] = None,
    ) -> None:
        user_message = ChatMessage(id=_new_id(), role="user", content=content)
        history = [*self.messages, user_message]
        changes = {"messages": history, "is_loading": True, "error": None}
        if related is not None:
            changes["related_notes"] = related
        self._set(**changes)

        local_system = ChatMessage(role="system", content=system_prompt or SMARTY_SYSTEM_PROMPT)
        backend_messages = history if system_prompt is None else [local_system, *history]
        try:
            reply = await self._reply(backend_messages, [local_system, *history])
        except ApiError as e:
            logger.error("Chat error: %s", e)
            self._set(error=str(e) or "Failed to send message", is_loading=False)
            return

        assistant_message = ChatMessage(id=_new_id(), role="assistant", content=reply)
        self._set(messages=[*history, assistant_message], is_loading=False)

    async def send_message(self, content: str) -> None:
        """Send the conversation so far plus ``content``."""
        await self._converse(content, system_prompt=None)

    async def send_message_with_notes_context(self, content: str) -> None:
        """Like ``send_message``, with the most relevant notes in a system prompt."""
        all_notes = list(self.notes())
        related = select_related_notes(all_notes, content)
        context = build_notes_context(related or all_notes[:CONTEXT_FALLBACK_NOTES])
        await self._converse(content, system_prompt=notes_context_prompt(context), related=related)

    async def _analyze(self, prompt_for: Callable[[str], str], request: str, empty_reply: str) -> None:
        all_notes = list(self.notes())
        if not all_notes:
            message = ChatMessage(id=_new_id(), role="assistant", content=empty_reply)
            self._set(messages=[*self.messages, message])
            return

        self._set(is_loading=True, error=None)
        prompt = [
            ChatMessage(role="system", content=prompt_for(build_notes_context(all_notes))),
            ChatMessage(role="user", content=request),
        ]
        try:
            reply = await self._reply(prompt, prompt)
        except ApiError as e:
            logger.error("Notes analysis error: %s", e)
            self._set(error=str(e) or "Failed to analyze notes", is_loading=False)
            return

        message = ChatMessage(id=_new_id(), role="assistant", content=reply)
        self._set(messages=[*self.messages, message], is_loading=False)

    async def summarize_notes(self) -> None:
        await self._analyze(summary_prompt, SUMMARY_REQUEST, NO_NOTES_TO_SUMMARIZE)

    async def organize_notes(self) -> None:
        await self._analyze(organize_prompt, ORGANIZE_REQUEST, NO_NOTES_TO_ORGANIZE)

    def find_related_notes(self, query: str) -> List[NoteWithCategory]:
        return select_related_notes(list(self.notes()), query)

    def clear_messages(self) -> None:
        self._set(messages=[], error=None, related_notes=[])

    def set_open(self, is_open: bool) -> None:
        self._set(is_open=is_open)
