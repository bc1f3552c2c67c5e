"""Chat orchestration: throttle, persist, build context, respond.

The chat path never raises to its caller for expected failures. Empty
messages, throttled users and upstream model errors come back as
``ChatReply(error=...)``; persistence is best-effort.
"""

import json
import logging
from collections.abc import AsyncGenerator

from clipbook.config import get_settings
from clipbook.exceptions import ConversationNotFoundError, UpstreamModelError
from clipbook.models.conversation import Conversation, ConversationLogEntry, Message
from clipbook.schemas.chat import ChatEvent, ChatReply, ChatRequest
from clipbook.services.context_builder import ContextBuilder
from clipbook.services.document_store import (
    BaseDocumentStore,
    get_document_store,
    messages_collection,
    user_collection,
)
from clipbook.services.rate_limiter import RateLimiter, get_rate_limiter
from clipbook.services.responder_service import (
    ModelBackedResponder,
    Responder,
    get_responder,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Try again later."
EMPTY_MESSAGE = "Empty message"


class ChatService:
    def __init__(
        self,
        store: BaseDocumentStore,
        rate_limiter: RateLimiter,
        context_builder: ContextBuilder,
        responder: Responder,
    ) -> None:
        self.store = store
        self.rate_limiter = rate_limiter
        self.context_builder = context_builder
        self.responder = responder

    async def handle(self, user_id: str, request: ChatRequest) -> ChatReply:
        if not self.rate_limiter.allow(user_id):
            logger.info(f"Chat rate limit hit for user {user_id}")
            return ChatReply(error=RATE_LIMIT_MESSAGE)

        message = request.text.strip()
        if not message:
            return ChatReply(error=EMPTY_MESSAGE)

        playlist_id = request.playlist_id or None
        conversation_id = request.conversation_id or await self._start_conversation(
            user_id, playlist_id
        )
        await self._append_message(user_id, conversation_id, "user", message)

        context = await self.context_builder.gather(user_id, playlist_id)
        try:
            reply = await self.responder.respond(message, context)
        except UpstreamModelError as e:
            logger.error(f"Chat reply failed for user {user_id}: {e.message}")
            await self._append_message(user_id, conversation_id, "assistant", f"Error: {e.message}")
            return ChatReply(error=e.message, conversation_id=conversation_id)

        await self._append_message(user_id, conversation_id, "assistant", reply)
        if isinstance(self.responder, ModelBackedResponder):
            await self._log_exchange(user_id, message, reply, playlist_id)
        return ChatReply(reply=reply, conversation_id=conversation_id)

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def create_conversation(self, user_id: str, playlist_id: str | None = None) -> Conversation:
        conversation = Conversation(playlist_id=playlist_id)
        conversation.id = await self.store.add(
            user_collection(user_id, "aiChats"), conversation.to_document()
        )
        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return conversation

    async def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        doc = await self.store.get(user_collection(user_id, "aiChats"), conversation_id)
        if doc is None:
            raise ConversationNotFoundError(conversation_id)
        return Conversation.from_document(doc.id, doc.data)

    async def list_messages(self, user_id: str, conversation_id: str) -> list[Message]:
        await self.get_conversation(user_id, conversation_id)
        docs = await self.store.query(
            messages_collection(user_id, conversation_id), order_by="createdAt"
        )
        return [Message.from_document(d.id, d.data) for d in docs]

    async def stream_messages(
        self, user_id: str, conversation_id: str
    ) -> AsyncGenerator[ChatEvent, None]:
        """Full ordered message log, once now and again after every change."""
        try:
            async for docs in self.store.listen(
                messages_collection(user_id, conversation_id), order_by="createdAt"
            ):
                messages = [
                    Message.from_document(d.id, d.data).model_dump(by_alias=True) for d in docs
                ]
                yield ChatEvent(event="messages", data=json.dumps(messages))
        except Exception as e:
            logger.exception(f"Message stream failed for conversation {conversation_id}")
            yield ChatEvent(event="error", data=str(e))

    async def _start_conversation(self, user_id: str, playlist_id: str | None) -> str | None:
        try:
            return (await self.create_conversation(user_id, playlist_id)).id
        except Exception as e:
            logger.warning(f"Could not create conversation for user {user_id}: {e}")
            return None

    async def _append_message(
        self, user_id: str, conversation_id: str | None, sender: str, text: str
    ) -> None:
        if not conversation_id:
            return
        try:
            await self.store.add(
                messages_collection(user_id, conversation_id),
                Message(sender=sender, text=text).to_document(),
            )
        except Exception as e:
            logger.warning(f"Failed to persist {sender} message in {conversation_id}: {e}")

    async def _log_exchange(
        self, user_id: str, message: str, reply: str, playlist_id: str | None
    ) -> None:
        entry = ConversationLogEntry(user_message=message, bot_reply=reply, playlist_id=playlist_id)
        try:
            await self.store.add(user_collection(user_id, "conversations"), entry.to_document())
        except Exception as e:
            logger.warning(f"Failed to write conversation log for user {user_id}: {e}")


def get_chat_service() -> ChatService:
    settings = get_settings()
    store = get_document_store()
    return ChatService(
        store=store,
        rate_limiter=get_rate_limiter(),
        context_builder=ContextBuilder(
            store,
            max_chars=settings.context_max_chars,
            clip_limit=settings.context_clip_limit,
            library_scan_limit=settings.context_library_scan_limit,
            sample_clips=settings.context_sample_clips,
        ),
        responder=get_responder(),
    )
