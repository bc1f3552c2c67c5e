"""Chat Schemas.

Request/response bodies for the callable chat endpoint, the HTTP model proxy
and conversation history, plus the normalized model reply every provider
adapter produces.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# =============================================================================
# Callable chat endpoint
# =============================================================================


class ChatRequest(BaseModel):
    """Request to the chat endpoint. ``prompt`` is accepted as an alias of ``message``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str | None = None
    prompt: str | None = None
    playlist_id: str | None = None
    conversation_id: str | None = None

    @property
    def text(self) -> str:
        return self.message or self.prompt or ""


class ChatReply(BaseModel):
    """Either ``reply`` or ``error`` is set, never both."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reply: str | None = None
    error: str | None = None
    conversation_id: str | None = None


# =============================================================================
# HTTP model proxy
# =============================================================================


class ProxyRequest(BaseModel):
    prompt: str | None = None


class ProxyResponse(BaseModel):
    ok: bool = True
    provider: str
    model: str
    result: str


# =============================================================================
# Normalized provider output
# =============================================================================


class ModelReply(BaseModel):
    """Model output after adapting a provider-specific payload."""

    text: str
    provider: str
    model: str


# =============================================================================
# Conversations
# =============================================================================


class ConversationCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    playlist_id: str | None = None


class ChatEvent(BaseModel):
    """A single Server-Sent Event for the message log stream."""

    event: Literal["messages", "error"] = Field(
        description="messages (full ordered log snapshot) or error"
    )
    data: str = Field(default="", description="JSON encoded messages or error text")
