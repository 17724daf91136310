"""
Wiring of the gateway, the three stores and the state cache.
"""
import logging
from typing import Optional

from smarty.client.cache import JsonStateCache
from smarty.client.config import client_settings
from smarty.client.gateway import SmartyGateway, TokenProvider
from smarty.client.stores import CategoriesStore, ChatStore, LocalAssistant, NotesStore, canned_assistant

logger = logging.getLogger(__name__)


class ClientSession:
    """
    One signed-in user's view of their notes.

    Notes are re-joined to categories whenever the category collection
    changes, and the chat store reads notes from the notes store.
    """

    def __init__(
        self,
        get_token: TokenProvider,
        gateway: Optional[SmartyGateway] = None,
        cache: Optional[JsonStateCache] = None,
        local_assistant: Optional[LocalAssistant] = None,
    ):
        self.gateway = gateway or SmartyGateway()
        if cache is None and client_settings.cache_path:
            cache = JsonStateCache(client_settings.cache_path)
        self.cache = cache

        self.categories = CategoriesStore(self.gateway, get_token)
        self.notes = NotesStore(
            self.gateway,
            get_token,
            categories=lambda: self.categories.categories,
            cache=cache,
        )
        self.chat = ChatStore(
            self.gateway,
            get_token,
            notes=lambda: self.notes.notes,
            local_assistant=local_assistant or canned_assistant,
        )
        self.categories.subscribe(self.notes.refresh_categories)

    async def load(self) -> None:
        """Restore cached notes, then fetch categories and notes."""
        self.notes.hydrate()
        await self.categories.fetch_categories()
        await self.notes.fetch_notes()
        logger.info(
            "Loaded %d notes and %d categories",
            len(self.notes.notes),
            len(self.categories.categories),
        )
