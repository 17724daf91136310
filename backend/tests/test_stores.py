"""
Tests for the client stores, using an in-process fake gateway.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from smarty.client.errors import ApiError
from smarty.client.session import ClientSession
from smarty.client.stores import CategoriesStore, ChatStore, NotesStore
from smarty.core import fallback
from smarty.core.prompts import NO_NOTES_TO_SUMMARIZE
from smarty.schemas.category import Category
from smarty.schemas.chat import ChatResponse
from smarty.schemas.note import Note, NoteCreate, NoteUpdate, NoteWithCategory

NOW = datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


async def get_token():
    return "token"


def make_note(note_id: str, title: str = "Title", content: str = "Body", category_id=None, age: int = 0) -> Note:
    stamp = NOW - timedelta(minutes=age)
    return Note(
        id=note_id,
        title=title,
        content=content,
        category_id=category_id,
        user_id="user-1",
        created_at=stamp,
        updated_at=stamp,
    )


class FakeGateway:
    """Server state kept in dicts; individual calls can be held or failed."""

    def __init__(self, notes: Optional[List[Note]] = None, categories: Optional[List[Category]] = None):
        self.notes: Dict[str, Note] = {note.id: note for note in notes or []}
        self.categories: Dict[str, Category] = {c.id: c for c in categories or []}
        self.fail: Dict[str, ApiError] = {}
        self.hold: Dict[str, asyncio.Event] = {}
        self.chat_reply: Optional[str] = "From backend"
        self.chat_calls: List[list] = []
        self.calls: List[str] = []

    async def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.hold:
            await self.hold[name].wait()
        if name in self.fail:
            raise self.fail[name]

    async def list_notes(self, get_token):
        snapshot = list(self.notes.values())
        await self._enter("list_notes")
        return snapshot

    async def create_note(self, data: NoteCreate, get_token):
        await self._enter("create_note")
        note = make_note(f"n{len(self.notes) + 1}", data.title, data.content, data.category_id)
        self.notes[note.id] = note
        return note

    async def update_note(self, data: NoteUpdate, get_token):
        await self._enter("update_note")
        note = make_note(data.id, data.title, data.content, data.category_id)
        self.notes[note.id] = note
        return note

    async def delete_note(self, note_id: str, get_token):
        await self._enter("delete_note")
        self.notes.pop(note_id, None)

    async def search_notes(self, query: str, get_token):
        await self._enter("search_notes")
        return [n for n in self.notes.values() if query.lower() in n.title.lower()]

    async def list_categories(self, get_token):
        await self._enter("list_categories")
        return list(self.categories.values())

    async def create_category(self, name, get_token, color=None):
        await self._enter("create_category")
        category = Category(id=f"c-{name.lower()}", name=name, color=color)
        self.categories[category.id] = category
        return category

    async def update_category(self, category_id, get_token, name=None, color=None):
        await self._enter("update_category")
        category = self.categories[category_id].model_copy(update={"name": name or self.categories[category_id].name})
        self.categories[category_id] = category
        return category

    async def delete_category(self, category_id, get_token):
        await self._enter("delete_category")
        self.categories.pop(category_id, None)

    async def send_chat_message(self, messages, get_token, stream=False, on_chunk=None):
        await self._enter("send_chat_message")
        self.chat_calls.append(list(messages))
        return ChatResponse(content=self.chat_reply or "")


WORK = Category(id="c-work", name="Work")
HOME = Category(id="c-home", name="Home")


class TestNotesStoreFetch:

    @pytest.mark.asyncio
    async def test_fetch_joins_categories(self):
        gateway = FakeGateway([make_note("n1", category_id="c-work"), make_note("n2", category_id="gone")])
        store = NotesStore(gateway, get_token, categories=lambda: [WORK, HOME])

        await store.fetch_notes()

        by_id = {note.id: note for note in store.notes}
        assert by_id["n1"].category == WORK
        # Dangling reference: no category, but the id is kept
        assert by_id["n2"].category is None
        assert by_id["n2"].category_id == "gone"
        assert store.is_loading is False
        assert store.error is None

    @pytest.mark.asyncio
    async def test_fetch_swallows_unavailable(self):
        gateway = FakeGateway([make_note("n1")])
        gateway.fail["list_notes"] = ApiError("404: Not Found", status_code=404)
        store = NotesStore(gateway, get_token)

        await store.fetch_notes()

        assert store.notes == []
        assert store.error is None

    @pytest.mark.asyncio
    async def test_fetch_reports_other_errors(self):
        gateway = FakeGateway()
        gateway.fail["list_notes"] = ApiError("500: Internal server error", status_code=500)
        store = NotesStore(gateway, get_token)

        await store.fetch_notes()

        assert store.error == "500: Internal server error"
        assert store.is_loading is False


class TestNotesStoreMutations:

    @pytest.mark.asyncio
    async def test_create_prepends(self):
        gateway = FakeGateway([make_note("n1")])
        store = NotesStore(gateway, get_token, categories=lambda: [WORK])
        await store.fetch_notes()

        created = await store.create_note(NoteCreate(title="New", content="Text", category_id="c-work"))

        assert [n.id for n in store.notes] == [created.id, "n1"]
        assert created.category == WORK

    @pytest.mark.asyncio
    async def test_create_failure_keeps_collection(self):
        gateway = FakeGateway([make_note("n1")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        gateway.fail["create_note"] = ApiError("500: boom", status_code=500)

        with pytest.raises(ApiError):
            await store.create_note(NoteCreate(title="New", content="Text"))

        assert [n.id for n in store.notes] == ["n1"]
        assert store.error == "500: boom"

    @pytest.mark.asyncio
    async def test_update_replaces_and_updates_selection(self):
        gateway = FakeGateway([make_note("n1"), make_note("n2")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        store.set_selected_note(store.notes[0])

        await store.update_note(NoteUpdate(id="n1", title="Renamed", content="Body"))

        assert [n.title for n in store.notes] == ["Renamed", "Title"]
        assert store.selected_note.title == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_removes_and_clears_selection(self):
        gateway = FakeGateway([make_note("n1"), make_note("n2")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        store.set_selected_note(store.notes[0])

        await store.delete_note("n1")

        assert [n.id for n in store.notes] == ["n2"]
        assert store.selected_note is None

    @pytest.mark.asyncio
    async def test_update_after_delete_does_not_resurrect(self):
        gateway = FakeGateway([make_note("n1")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()

        await store.delete_note("n1")
        result = await store.update_note(NoteUpdate(id="n1", title="Late", content="Edit"))

        assert result is None
        assert store.notes == []

    @pytest.mark.asyncio
    async def test_concurrent_update_and_delete(self):
        """Whatever order the calls finish in, a deleted note stays deleted."""
        gateway = FakeGateway([make_note("n1")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        gateway.hold["update_note"] = asyncio.Event()

        update = asyncio.create_task(store.update_note(NoteUpdate(id="n1", title="Edit", content="x")))
        await asyncio.sleep(0)
        delete = asyncio.create_task(store.delete_note("n1"))
        await asyncio.sleep(0)
        # Delete waits for the in-flight update of the same note
        assert gateway.calls.count("delete_note") == 0

        gateway.hold["update_note"].set()
        await asyncio.gather(update, delete)

        assert gateway.calls == ["list_notes", "update_note", "delete_note"]
        assert store.notes == []

    @pytest.mark.asyncio
    async def test_fetch_in_flight_does_not_restore_deleted_note(self):
        gateway = FakeGateway([make_note("n1"), make_note("n2")])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        gateway.hold["list_notes"] = asyncio.Event()

        fetch = asyncio.create_task(store.fetch_notes())
        await asyncio.sleep(0)
        # The held fetch already holds the list as it was before the delete
        await store.delete_note("n1")

        gateway.hold["list_notes"].set()
        await fetch

        assert [n.id for n in store.notes] == ["n2"]
        assert store._deleted_during_fetch == set()

    @pytest.mark.asyncio
    async def test_entity_locks_released(self):
        gateway = FakeGateway([make_note(f"n{i}") for i in range(20)])
        store = NotesStore(gateway, get_token)
        await store.fetch_notes()
        gateway.hold["update_note"] = asyncio.Event()

        first = asyncio.create_task(store.update_note(NoteUpdate(id="n0", title="A", content="x")))
        second = asyncio.create_task(store.update_note(NoteUpdate(id="n0", title="B", content="x")))
        await asyncio.sleep(0)
        assert store._lock_users == {"n0": 2}

        gateway.hold["update_note"].set()
        await asyncio.gather(first, second)
        for i in range(1, 20):
            await store.delete_note(f"n{i}")

        assert store._locks == {}
        assert store._lock_users == {}
        assert store.notes[0].title == "B"

    @pytest.mark.asyncio
    async def test_search_results_are_enriched(self):
        gateway = FakeGateway([make_note("n1", "Milk run", category_id="c-home"), make_note("n2", "Work")])
        store = NotesStore(gateway, get_token, categories=lambda: [HOME])

        results = await store.search_notes("milk")

        assert [n.id for n in results] == ["n1"]
        assert results[0].category == HOME
        assert store.search_results == results

    @pytest.mark.asyncio
    async def test_search_failure_sets_error(self):
        gateway = FakeGateway()
        gateway.fail["search_notes"] = ApiError("Network request failed: refused")
        store = NotesStore(gateway, get_token)

        assert await store.search_notes("milk") == []
        assert store.error.startswith("Network request failed")


class TestNotesView:

    @pytest.fixture
    async def store(self):
        gateway = FakeGateway([
            make_note("n1", "banana", "fruit", category_id="c-work", age=3),
            make_note("n2", "Apple", "fruit", category_id="c-home", age=1),
            make_note("n3", "cherry", "stone fruit", age=2),
        ])
        store = NotesStore(gateway, get_token, categories=lambda: [WORK, HOME])
        await store.fetch_notes()
        return store

    @pytest.mark.asyncio
    async def test_default_sort_newest_first(self, store):
        assert [n.id for n in store.visible_notes] == ["n2", "n3", "n1"]

    @pytest.mark.asyncio
    async def test_sort_by_title(self, store):
        store.set_sorting("title", "asc")
        assert [n.title for n in store.visible_notes] == ["Apple", "banana", "cherry"]

    @pytest.mark.asyncio
    async def test_sort_by_category(self, store):
        store.set_sorting("category", "asc")
        assert [n.id for n in store.visible_notes] == ["n3", "n2", "n1"]

    @pytest.mark.asyncio
    async def test_unknown_sort_key(self, store):
        with pytest.raises(ValueError):
            store.set_sorting("colour")

    @pytest.mark.asyncio
    async def test_filters(self, store):
        store.set_filters(search_query="STONE")
        assert [n.id for n in store.visible_notes] == ["n3"]

        store.set_filters(category_id="c-work")
        assert [n.id for n in store.visible_notes] == ["n1"]

        store.clear_filters()
        assert len(store.visible_notes) == 3


class TestCategoriesStore:

    @pytest.mark.asyncio
    async def test_crud(self):
        gateway = FakeGateway(categories=[WORK])
        store = CategoriesStore(gateway, get_token)
        await store.fetch_categories()

        created = await store.create_category("Travel")
        assert [c.id for c in store.categories] == [created.id, "c-work"]

        await store.update_category("c-work", name="Job")
        assert store.categories[1].name == "Job"

        await store.delete_category(created.id)
        assert [c.id for c in store.categories] == ["c-work"]

    @pytest.mark.asyncio
    async def test_fetch_error(self):
        gateway = FakeGateway()
        gateway.fail["list_categories"] = ApiError("401: Authentication failed", status_code=401)
        store = CategoriesStore(gateway, get_token)

        await store.fetch_categories()

        assert store.error == "401: Authentication failed"
        store.clear_error()
        assert store.error is None


class TestSession:

    @pytest.mark.asyncio
    async def test_category_changes_rejoin_notes(self):
        gateway = FakeGateway([make_note("n1", category_id="c-work")], [WORK])
        session = ClientSession(get_token, gateway=gateway)
        await session.load()
        assert session.notes.notes[0].category.name == "Work"

        await session.categories.update_category("c-work", name="Job")
        assert session.notes.notes[0].category.name == "Job"

        await session.categories.delete_category("c-work")
        assert session.notes.notes[0].category is None
        assert session.notes.notes[0].category_id == "c-work"

    @pytest.mark.asyncio
    async def test_subscribers_notified(self):
        gateway = FakeGateway([make_note("n1")])
        session = ClientSession(get_token, gateway=gateway)
        changes = []
        unsubscribe = session.notes.subscribe(lambda: changes.append(len(session.notes.notes)))

        await session.notes.fetch_notes()
        assert changes[-1] == 1

        unsubscribe()
        count = len(changes)
        await session.notes.fetch_notes()
        assert len(changes) == count


class TestChatStore:

    def notes(self) -> List[NoteWithCategory]:
        return [
            NoteWithCategory(**make_note(f"n{i}", f"Gardening tip {i}", "Water daily").model_dump())
            for i in range(8)
        ] + [NoteWithCategory(**make_note("other", "Taxes", "File by April").model_dump())]

    @pytest.mark.asyncio
    async def test_send_message_appends_both_turns(self):
        gateway = FakeGateway()
        store = ChatStore(gateway, get_token)

        await store.send_message("Hello")

        assert [m.role for m in store.messages] == ["user", "assistant"]
        assert store.messages[1].content == "From backend"
        assert all(m.id for m in store.messages)
        assert store.is_loading is False

    @pytest.mark.asyncio
    async def test_related_notes_are_capped(self):
        gateway = FakeGateway()
        store = ChatStore(gateway, get_token, notes=self.notes)

        await store.send_message_with_notes_context("any gardening advice?")

        assert len(store.related_notes) == 5
        assert all("Gardening" in n.title for n in store.related_notes)
        sent = gateway.chat_calls[0]
        assert sent[0].role == "system"
        assert "Gardening tip 0" in sent[0].content
        assert "Taxes" not in sent[0].content

    @pytest.mark.asyncio
    async def test_falls_back_to_local_assistant(self):
        gateway = FakeGateway()
        gateway.fail["send_chat_message"] = ApiError("500: Internal server error", status_code=500)
        store = ChatStore(gateway, get_token)

        await store.send_message("hello")

        assert store.messages[-1].content == fallback.GREETING
        assert store.error is None

    @pytest.mark.asyncio
    async def test_local_only_without_token(self):
        gateway = FakeGateway()
        store = ChatStore(gateway, None)

        await store.send_message("hello")

        assert gateway.calls == []
        assert store.messages[-1].content == fallback.GREETING

    @pytest.mark.asyncio
    async def test_local_assistant_failure_sets_error(self):
        async def broken(messages):
            raise ApiError("Network request failed: offline")

        gateway = FakeGateway()
        gateway.chat_reply = ""
        store = ChatStore(gateway, get_token, local_assistant=broken)

        await store.send_message("hello")

        assert store.error == "Network request failed: offline"
        assert [m.role for m in store.messages] == ["user"]

    @pytest.mark.asyncio
    async def test_summarize_without_notes(self):
        gateway = FakeGateway()
        store = ChatStore(gateway, get_token)

        await store.summarize_notes()

        assert store.messages[-1].content == NO_NOTES_TO_SUMMARIZE
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_organize_with_notes(self):
        gateway = FakeGateway()
        store = ChatStore(gateway, get_token, notes=self.notes)

        await store.organize_notes()

        assert store.messages[-1].role == "assistant"
        assert gateway.chat_calls[0][0].role == "system"

    @pytest.mark.asyncio
    async def test_find_related_and_clear(self):
        store = ChatStore(FakeGateway(), get_token, notes=self.notes)
        assert [n.id for n in store.find_related_notes("taxes")] == ["other"]

        await store.send_message("hello")
        store.set_open(True)
        store.clear_messages()
        assert store.messages == []
        assert store.is_open is True
