"""Tests for chat orchestration: throttling, persistence, responders."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from clipbook.exceptions import UpstreamModelError
from clipbook.schemas.chat import ChatRequest, ModelReply
from clipbook.services.chat_service import EMPTY_MESSAGE, RATE_LIMIT_MESSAGE, ChatService
from clipbook.services.context_builder import ChatContext, ContextBuilder
from clipbook.services.document_store import messages_collection, user_collection
from clipbook.services.rate_limiter import InMemoryRateLimiter
from clipbook.services.responder_service import (
    SYSTEM_NOTE,
    ModelBackedResponder,
    RuleBasedResponder,
    build_prompt,
)


def model_responder(reply: str = "Model answer", error: Exception | None = None):
    provider = MagicMock()
    if error is not None:
        provider.generate = AsyncMock(side_effect=error)
    else:
        provider.generate = AsyncMock(
            return_value=ModelReply(text=reply, provider="huggingface", model="test-model")
        )
    return ModelBackedResponder(provider), provider


class TestResponders:
    def test_build_prompt(self):
        prompt = build_prompt("What is this?", "Playlist: X")
        assert prompt == f"{SYSTEM_NOTE}\n\nPlaylist: X\n\nUser: What is this?\nAssistant:"

    def test_build_prompt_without_context(self):
        assert build_prompt("Hi", "") == f"{SYSTEM_NOTE}\n\nUser: Hi\nAssistant:"

    @pytest.mark.asyncio
    async def test_model_backed_sends_context(self):
        responder, provider = model_responder("ok")
        reply = await responder.respond("Hi", ChatContext(text="Playlist: X"))

        assert reply == "ok"
        sent_prompt = provider.generate.await_args.args[0]
        assert "Playlist: X" in sent_prompt
        assert sent_prompt.endswith("User: Hi\nAssistant:")

    @pytest.mark.asyncio
    async def test_rule_based_uses_clips(self):
        reply = await RuleBasedResponder().respond("summarize", ChatContext())
        assert reply == "No clips found in this playlist."


class TestChatService:
    @pytest.mark.asyncio
    async def test_rule_based_reply_persists_conversation(self, chat_service, store, user_id, seed):
        ids = await seed()

        result = await chat_service.handle(
            user_id, ChatRequest(message="summarize", playlist_id=ids["playlist"])
        )

        assert result.error is None
        assert result.reply.startswith("This playlist covers:")
        conversation = await store.get(user_collection(user_id, "aiChats"), result.conversation_id)
        assert conversation.data["playlistId"] == ids["playlist"]

        messages = await chat_service.list_messages(user_id, result.conversation_id)
        assert [m.sender for m in messages] == ["user", "assistant"]
        assert messages[0].text == "summarize"
        assert messages[1].text == result.reply

    @pytest.mark.asyncio
    async def test_prompt_is_an_alias_of_message(self, chat_service, user_id):
        result = await chat_service.handle(user_id, ChatRequest(prompt="quiz me"))
        assert result.reply == "No clips available for quiz."

    @pytest.mark.asyncio
    async def test_empty_message_falls_back_to_prompt(self, chat_service, user_id):
        result = await chat_service.handle(user_id, ChatRequest(message="", prompt="quiz me"))
        assert result.error is None
        assert result.reply == "No clips available for quiz."

    @pytest.mark.asyncio
    async def test_existing_conversation_is_reused(self, chat_service, user_id):
        conversation = await chat_service.create_conversation(user_id)
        request = ChatRequest(message="hello", conversation_id=conversation.id)

        await chat_service.handle(user_id, request)
        result = await chat_service.handle(user_id, request)

        assert result.conversation_id == conversation.id
        messages = await chat_service.list_messages(user_id, conversation.id)
        assert len(messages) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_message(self, chat_service, user_id, text):
        result = await chat_service.handle(user_id, ChatRequest(message=text))
        assert result.error == EMPTY_MESSAGE
        assert result.reply is None

    @pytest.mark.asyncio
    async def test_rate_limit(self, store, user_id):
        service = ChatService(
            store=store,
            rate_limiter=InMemoryRateLimiter(max_requests=2, window_ms=60_000),
            context_builder=ContextBuilder(store),
            responder=RuleBasedResponder(),
        )

        assert (await service.handle(user_id, ChatRequest(message="hi"))).reply
        assert (await service.handle(user_id, ChatRequest(message="hi"))).reply
        result = await service.handle(user_id, ChatRequest(message="hi"))
        assert result.error == RATE_LIMIT_MESSAGE

    @pytest.mark.asyncio
    async def test_model_reply_writes_conversation_log(self, store, rate_limiter, user_id, seed):
        ids = await seed()
        responder, provider = model_responder("Watch the decorators video.")
        service = ChatService(store, rate_limiter, ContextBuilder(store), responder)

        result = await service.handle(
            user_id, ChatRequest(message="what next?", playlist_id=ids["playlist"])
        )

        assert result.reply == "Watch the decorators video."
        assert "Playlist: Python Basics" in provider.generate.await_args.args[0]
        log = await store.query(user_collection(user_id, "conversations"))
        assert len(log) == 1
        assert log[0].data["userMessage"] == "what next?"
        assert log[0].data["botReply"] == "Watch the decorators video."
        assert log[0].data["playlistId"] == ids["playlist"]

    @pytest.mark.asyncio
    async def test_upstream_failure_is_stringified_and_persisted(self, store, rate_limiter, user_id):
        responder, _ = model_responder(error=UpstreamModelError("huggingface error 503: loading"))
        service = ChatService(store, rate_limiter, ContextBuilder(store), responder)

        result = await service.handle(user_id, ChatRequest(message="hi"))

        assert result.error == "huggingface error 503: loading"
        assert result.reply is None
        docs = await store.query(
            messages_collection(user_id, result.conversation_id), order_by="createdAt"
        )
        assert docs[-1].data["from"] == "assistant"
        assert docs[-1].data["text"] == "Error: huggingface error 503: loading"
        assert await store.query(user_collection(user_id, "conversations")) == []

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_fail_chat(self, rate_limiter, user_id):
        store = MagicMock()
        store.add = AsyncMock(side_effect=RuntimeError("store down"))
        store.get = AsyncMock(return_value=None)
        store.query = AsyncMock(return_value=[])
        service = ChatService(store, rate_limiter, ContextBuilder(store), RuleBasedResponder())

        result = await service.handle(user_id, ChatRequest(message="quiz me"))

        assert result.reply == "No clips available for quiz."
        assert result.conversation_id is None

    @pytest.mark.asyncio
    async def test_server_timestamps_are_read_as_epoch_ms(self, chat_service, store, user_id):
        conversation = await chat_service.create_conversation(user_id)
        await store.set(
            messages_collection(user_id, conversation.id),
            "m1",
            {"from": "user", "text": "hi", "createdAt": datetime(2024, 1, 1, tzinfo=UTC)},
        )

        messages = await chat_service.list_messages(user_id, conversation.id)

        assert [m.text for m in messages] == ["hi"]
        assert messages[0].created_at == 1_704_067_200_000

    @pytest.mark.asyncio
    async def test_stream_messages_yields_snapshots(self, chat_service, user_id):
        conversation = await chat_service.create_conversation(user_id)
        await chat_service.handle(user_id, ChatRequest(message="hi", conversation_id=conversation.id))

        events = chat_service.stream_messages(user_id, conversation.id)
        first = await events.__anext__()
        await events.aclose()

        assert first.event == "messages"
        assert '"from": "user"' in first.data
        assert '"from": "assistant"' in first.data
