from typing import Literal

from pydantic import Field

from clipbook.models.clip import StoredDocument, now_ms


class Conversation(StoredDocument):
    """Chat conversation header (``aiChats/{id}``)."""

    playlist_id: str | None = None
    created_at: int = Field(default_factory=now_ms)


class Message(StoredDocument):
    """One entry of the append-only chat log (``aiChats/{id}/messages/{id}``)."""

    # "from" is a keyword; stored field name is still "from"
    sender: Literal["user", "assistant"] = Field(alias="from")
    text: str
    created_at: int = Field(default_factory=now_ms)


class ConversationLogEntry(StoredDocument):
    """Flat user/bot exchange record kept in ``conversations/{id}``."""

    user_message: str
    bot_reply: str
    playlist_id: str | None = None
    created_at: int = Field(default_factory=now_ms)
