"""Chat endpoints.

``POST /api/chat`` is the callable chat: it always answers 200 with either a
reply or an ``error`` string. ``POST /hf-chat`` is the raw model proxy and
uses regular HTTP error statuses.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from clipbook.api.deps import Chat, CurrentUser
from clipbook.exceptions import ValidationError
from clipbook.models.conversation import Conversation, Message
from clipbook.schemas.chat import (
    ChatReply,
    ChatRequest,
    ConversationCreate,
    ProxyRequest,
    ProxyResponse,
)
from clipbook.services.model_providers import ModelProvider, get_model_provider

logger = logging.getLogger(__name__)

router = APIRouter()
proxy_router = APIRouter()


@router.post("/chat", response_model=ChatReply, response_model_exclude_none=True)
async def chat(
    request: ChatRequest,
    current_user: CurrentUser,
    chat_service: Chat,
) -> ChatReply:
    """Answer one chat message about the user's library."""
    return await chat_service.handle(current_user.uid, request)


@router.post(
    "/chats",
    response_model=Conversation,
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    data: ConversationCreate,
    current_user: CurrentUser,
    chat_service: Chat,
) -> Conversation:
    return await chat_service.create_conversation(current_user.uid, data.playlist_id)


@router.get("/chats/{conversation_id}/messages", response_model=list[Message])
async def list_messages(
    conversation_id: str,
    current_user: CurrentUser,
    chat_service: Chat,
) -> list[Message]:
    """Conversation log in createdAt order."""
    return await chat_service.list_messages(current_user.uid, conversation_id)


@router.get("/chats/{conversation_id}/events")
async def stream_messages(
    conversation_id: str,
    current_user: CurrentUser,
    chat_service: Chat,
) -> StreamingResponse:
    """Server-Sent Events: the full message log on connect and after every write."""
    # 404 before the stream starts
    await chat_service.get_conversation(current_user.uid, conversation_id)

    async def event_generator() -> AsyncGenerator[str, None]:
        async for event in chat_service.stream_messages(current_user.uid, conversation_id):
            yield f"event: {event.event}\ndata: {event.data}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


def get_proxy_provider() -> ModelProvider:
    return get_model_provider()


@proxy_router.post("/hf-chat", response_model=ProxyResponse)
async def hf_chat(
    request: ProxyRequest,
    provider: ModelProvider = Depends(get_proxy_provider),
) -> ProxyResponse:
    """Forward a raw prompt to the configured model provider.

    400 on an empty prompt, 500 when the provider key is missing, 502 when
    the provider call fails.
    """
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise ValidationError("Missing prompt")

    reply = await provider.generate(prompt)
    return ProxyResponse(provider=reply.provider, model=reply.model, result=reply.text)
