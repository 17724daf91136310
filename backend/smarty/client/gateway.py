"""
Remote data gateway for the Smarty backend.

Translates note, category and chat operations into HTTP calls, unwraps
response envelopes and converts every failure into ``ApiError``.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from smarty.client.config import client_settings
from smarty.client.envelope import decode_collection, decode_entity
from smarty.client.errors import ApiError
from smarty.client.fallback import FallbackChain, try_next_on, when_unavailable
from smarty.core.relevance import filter_notes
from smarty.schemas.category import Category
from smarty.schemas.chat import ChatMessage, ChatResponse
from smarty.schemas.note import Note, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]
ChunkCallback = Callable[[str], None]


class SmartyGateway:
    """
    HTTP client for the notes, categories and chat endpoints.

    Every call takes a ``get_token`` coroutine function supplied by the
    identity provider; the token is sent as a bearer credential.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or client_settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else client_settings.timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"Content-Type": "application/json"},
        )

    async def _auth_headers(self, get_token: TokenProvider) -> Dict[str, str]:
        token = await get_token()
        if not token:
            raise ApiError("Authentication token not available")
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        get_token: TokenProvider,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON body."""
        headers = await self._auth_headers(get_token)
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException:
            raise ApiError.network("request timed out")
        except httpx.TransportError as e:
            raise ApiError.network(str(e) or type(e).__name__)

        if response.is_error:
            raise ApiError.from_response(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise ApiError(f"{response.status_code}: Invalid JSON in response")

    # Notes

    async def list_notes(self, get_token: TokenProvider) -> List[Note]:
        body = await self._request("GET", "/notes", get_token)
        return decode_collection(body, "notes", Note)

    async def get_note(self, note_id: str, get_token: TokenProvider) -> Note:
        """There is no per-note endpoint; look the note up in the full list."""
        for note in await self.list_notes(get_token):
            if note.id == note_id:
                return note
        raise ApiError("404: Note not found", status_code=404)

    async def create_note(self, data: NoteCreate, get_token: TokenProvider) -> Note:
        if not data.title or not data.content:
            raise ApiError("Title and content are required")
        body = await self._request(
            "POST", "/notes", get_token, json=data.model_dump(mode="json", by_alias=True)
        )
        return decode_entity(body, "note", Note)

    async def update_note(self, data: NoteUpdate, get_token: TokenProvider) -> Note:
        """Full replacement: id, title, content and category are all sent."""
        if not data.id:
            raise ApiError("Note ID is required")
        body = await self._request(
            "PUT", "/notes", get_token, json=data.model_dump(mode="json", by_alias=True)
        )
        return decode_entity(body, "note", Note)

    async def delete_note(self, note_id: str, get_token: TokenProvider) -> None:
        # The id travels in the body, not the path
        await self._request("DELETE", "/notes", get_token, json={"id": note_id})

    async def _server_search(self, path: str, query: str, get_token: TokenProvider) -> List[Note]:
        body = await self._request("GET", path, get_token, params={"q": query})
        return decode_collection(body, "notes", Note)

    async def _local_search(self, query: str, get_token: TokenProvider) -> List[Note]:
        return filter_notes(await self.list_notes(get_token), query)

    async def search_notes(self, query: str, get_token: TokenProvider) -> List[Note]:
        """
        Search notes on the server, or locally when no search endpoint exists.

        Args:
            query: Text to look for in titles and content
            get_token: Bearer token provider

        Returns:
            Matching notes
        """
        chain = FallbackChain([
            ("/notes/search", lambda: try_next_on(
                lambda: self._server_search("/notes/search", query, get_token), when_unavailable)),
            ("/search/notes", lambda: try_next_on(
                lambda: self._server_search("/search/notes", query, get_token), when_unavailable)),
            ("local filter", lambda: self._local_search(query, get_token)),
        ])
        return await chain.run()

    # Categories

    async def list_categories(self, get_token: TokenProvider) -> List[Category]:
        body = await self._request("GET", "/categories", get_token)
        return decode_collection(body, "categories", Category)

    async def create_category(
        self,
        name: str,
        get_token: TokenProvider,
        color: Optional[str] = None,
    ) -> Category:
        payload = {"name": name}
        if color is not None:
            payload["color"] = color
        body = await self._request("POST", "/categories", get_token, json=payload)
        return decode_entity(body, "category", Category)

    async def update_category(
        self,
        category_id: str,
        get_token: TokenProvider,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        payload = {"id": category_id}
        if name is not None:
            payload["name"] = name
        if color is not None:
            payload["color"] = color
        body = await self._request("PUT", "/categories", get_token, json=payload)
        return decode_entity(body, "category", Category)

    async def delete_category(self, category_id: str, get_token: TokenProvider) -> None:
        await self._request("DELETE", "/categories", get_token, json={"id": category_id})

    # Chat

    async def send_chat_message(
        self,
        messages: Sequence[ChatMessage],
        get_token: TokenProvider,
        stream: bool = False,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> ChatResponse:
        """
        Send the whole conversation and return the assistant's reply.

        The backend may answer with JSON ``{content, relatedNotes}`` or with a
        ``text/plain`` stream; both are accepted whatever ``stream`` asked for.
        """
        headers = await self._auth_headers(get_token)
        headers["Accept"] = "text/plain" if stream else "application/json"
        payload = {"messages": [{"role": m.role, "content": m.content} for m in messages]}

        try:
            async with self._client() as client:
                async with client.stream("POST", "/chat", json=payload, headers=headers) as response:
                    if response.is_error:
                        await response.aread()
                        raise ApiError.from_response(response)

                    if response.headers.get("content-type", "").startswith("text/plain"):
                        chunks = []
                        async for chunk in response.aiter_text():
                            chunks.append(chunk)
                            if on_chunk is not None:
                                on_chunk(chunk)
                        return ChatResponse(content="".join(chunks))

                    await response.aread()
        except httpx.TimeoutException:
            raise ApiError.network("request timed out")
        except httpx.TransportError as e:
            raise ApiError.network(str(e) or type(e).__name__)

        try:
            body = response.json()
        except ValueError:
            raise ApiError(f"{response.status_code}: Invalid JSON in response")
        if not isinstance(body, dict):
            raise ApiError("Unexpected chat response shape")
        return ChatResponse.model_validate(
            {"content": body.get("content") or "", "relatedNotes": body.get("relatedNotes") or []}
        )

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get("/health")
        except httpx.HTTPError as e:
            logger.warning("Health check failed: %s", e)
            return False
        return response.is_success
