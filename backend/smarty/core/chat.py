"""
ChatHandler - proxies a conversation to the Claude API.
Falls back to canned demo replies when no API key is configured.
"""
import logging
from typing import Optional, List, Dict, Any, AsyncGenerator, Tuple

import anthropic

from smarty.config import settings
from smarty.core.fallback import canned_chat, last_user_content
from smarty.core.prompts import SMARTY_SYSTEM_PROMPT
from smarty.core.relevance import select_related_notes
from smarty.repositories.base import Repository
from smarty.schemas.chat import ChatMessage, ChatResponse
from smarty.schemas.note import Note

logger = logging.getLogger(__name__)


def to_anthropic_messages(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, str]]]:
    """
    Split role-tagged messages into Claude's system prompt and turn list.

    System messages are joined into the system prompt. Consecutive turns from
    the same role are merged and leading assistant turns dropped, since the
    Messages API wants alternating turns starting with the user.
    """
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    system = "\n\n".join(system_parts) if system_parts else SMARTY_SYSTEM_PROMPT

    turns: List[Dict[str, str]] = []
    for message in messages:
        role = message["role"]
        if role == "system":
            continue
        if not turns and role != "user":
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1] = {"role": role, "content": f"{turns[-1]['content']}\n\n{message['content']}"}
        else:
            turns.append({"role": role, "content": message["content"]})

    return system, turns


class ChatHandler:
    """
    Stateless chat processing: every request carries the full history.
    """

    def __init__(
        self,
        notes: Repository[Note],
        user_id: str,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self.notes = notes
        self.user_id = user_id
        if client is None and settings.anthropic_api_key:
            client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self.client = client

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """Generate the assistant's reply to a conversation."""
        if not self.configured:
            logger.info("No completion API key configured, using demo reply")
            return canned_chat(messages)

        system, turns = to_anthropic_messages(messages)
        try:
            response = await self.client.messages.create(
                model=settings.anthropic_model,
                max_tokens=settings.chat_max_tokens,
                temperature=settings.chat_temperature,
                system=system,
                messages=turns,
            )
        except anthropic.APIError as e:
            logger.error("Completion API error for user %s: %s", self.user_id, e)
            raise

        return "".join(block.text for block in response.content if block.type == "text")

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncGenerator[str, None]:
        """Yield the reply as text chunks."""
        if not self.configured:
            words = canned_chat(messages).split(" ")
            for i, word in enumerate(words):
                yield word + (" " if i < len(words) - 1 else "")
            return

        system, turns = to_anthropic_messages(messages)
        async with self.client.messages.stream(
            model=settings.anthropic_model,
            max_tokens=settings.chat_max_tokens,
            temperature=settings.chat_temperature,
            system=system,
            messages=turns,
        ) as stream:
            async for text in stream.text_stream:
                yield text

    async def related_notes(self, messages: List[Dict[str, Any]]) -> List[Note]:
        query = last_user_content(messages) or ""
        notes = await self.notes.list(self.user_id)
        return select_related_notes(notes, query)

    async def process_messages(self, messages: List[ChatMessage]) -> ChatResponse:
        """Reply to a conversation and attach the notes it seems to be about."""
        payload = [{"role": m.role, "content": m.content} for m in messages]
        content = await self.complete(payload)
        related = await self.related_notes(payload)
        return ChatResponse(content=content, related_notes=related)
