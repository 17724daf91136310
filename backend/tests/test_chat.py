"""
Tests for the chat endpoint and the chat handler.
"""
from typing import Dict
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest
from fastapi.testclient import TestClient

from smarty.api.deps import get_chat_handler
from smarty.config import settings
from smarty.main import app
from smarty.core import fallback
from smarty.core.chat import ChatHandler, to_anthropic_messages
from smarty.core.prompts import SMARTY_SYSTEM_PROMPT
from smarty.repositories import InMemoryRepository
from smarty.schemas.chat import ChatMessage


class TestChatEndpoint:
    """Tests for POST /api/chat without a completion API key."""

    def test_chat_unauthenticated(self, client: TestClient):
        response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        assert response.status_code == 401

    def test_chat_requires_messages(self, client: TestClient, auth_headers: Dict[str, str]):
        for body in ({}, {"messages": []}):
            response = client.post("/api/chat", json=body, headers=auth_headers)
            assert response.status_code == 400
            assert response.json() == {"error": "Messages array is required"}

    def test_chat_last_message_from_user(self, client: TestClient, auth_headers: Dict[str, str]):
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Last message must be from user"}

    def test_chat_invalid_role(self, client: TestClient, auth_headers: Dict[str, str]):
        response = client.post(
            "/api/chat", json={"messages": [{"role": "robot", "content": "hi"}]}, headers=auth_headers
        )
        assert response.status_code == 400

    def test_chat_canned_reply(self, client: TestClient, auth_headers: Dict[str, str]):
        response = client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "Hello there"}]}, headers=auth_headers
        )
        assert response.status_code == 200
        data = response.json()
        assert data["content"] == fallback.GREETING
        assert data["relatedNotes"] == []

    def test_chat_related_notes(
        self, client: TestClient, auth_headers: Dict[str, str], test_note: dict
    ):
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "what about eggs"}]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert [n["id"] for n in response.json()["relatedNotes"]] == [test_note["id"]]

    def test_chat_streams_plain_text(self, client: TestClient, auth_headers: Dict[str, str]):
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "help"}]},
            headers={**auth_headers, "Accept": "text/plain"},
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == fallback.HELP


def _text_response(text: str) -> MagicMock:
    block = MagicMock()
    block.type = "text"
    block.text = text
    response = MagicMock()
    response.content = [block]
    return response


class TestChatHandler:
    """Tests for ChatHandler with a mocked completion client."""

    @pytest.mark.asyncio
    async def test_complete_calls_messages_api(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_text_response("Hi from Claude"))
        handler = ChatHandler(InMemoryRepository(), "user-1", client=client)

        reply = await handler.complete([
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hello"},
        ])

        assert reply == "Hi from Claude"
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be brief."
        assert kwargs["messages"] == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    async def test_process_messages(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_text_response("Sure"))
        handler = ChatHandler(InMemoryRepository(), "user-1", client=client)

        response = await handler.process_messages([ChatMessage(role="user", content="Summarize")])

        assert response.content == "Sure"
        assert response.related_notes == []

    @pytest.mark.asyncio
    async def test_canned_when_not_configured(self):
        handler = ChatHandler(InMemoryRepository(), "user-1")
        assert not handler.configured
        reply = await handler.complete([{"role": "user", "content": "please organize my notes"}])
        assert reply == fallback.ORGANIZE

    def test_client_created_when_key_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "anthropic_api_key", "sk-test")
        with patch("smarty.core.chat.anthropic.AsyncAnthropic") as mock_client:
            handler = ChatHandler(InMemoryRepository(), "user-1")
        mock_client.assert_called_once_with(api_key="sk-test")
        assert handler.configured

    def test_api_error_becomes_500(self, client: TestClient, auth_headers: Dict[str, str]):
        failing = MagicMock()
        failing.messages.create = AsyncMock(side_effect=anthropic.APIError(
            "overloaded", request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"), body=None
        ))
        app.dependency_overrides[get_chat_handler] = lambda: ChatHandler(InMemoryRepository(), "user-1", client=failing)

        response = client.post(
            "/api/chat", json={"messages": [{"role": "user", "content": "hi"}]}, headers=auth_headers
        )

        assert response.status_code == 500
        assert response.json()["error"].startswith("Error processing message")


class TestAnthropicMessages:

    def test_default_system_prompt(self):
        system, turns = to_anthropic_messages([{"role": "user", "content": "hi"}])
        assert system == SMARTY_SYSTEM_PROMPT
        assert turns == [{"role": "user", "content": "hi"}]

    def test_merges_and_drops_turns(self):
        system, turns = to_anthropic_messages([
            {"role": "assistant", "content": "Welcome"},
            {"role": "system", "content": "A"},
            {"role": "user", "content": "one"},
            {"role": "user", "content": "two"},
            {"role": "system", "content": "B"},
            {"role": "assistant", "content": "ok"},
        ])
        assert system == "A\n\nB"
        assert turns == [
            {"role": "user", "content": "one\n\ntwo"},
            {"role": "assistant", "content": "ok"},
        ]


class TestCannedReplies:

    def test_keyword_order(self):
        """Greeting keywords win over later ones."""
        assert fallback.canned_reply("hi, summarize please") == fallback.GREETING
        assert fallback.canned_reply("Summarize my week") == fallback.SUMMARY

    def test_default_reply_mentions_message(self):
        reply = fallback.canned_reply("quantum gardening")
        assert "quantum gardening" in reply
