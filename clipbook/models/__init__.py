from clipbook.models.clip import Clip, Playlist, StoredDocument, now_ms
from clipbook.models.conversation import Conversation, ConversationLogEntry, Message

__all__ = [
    "StoredDocument",
    "Clip",
    "Playlist",
    "Conversation",
    "Message",
    "ConversationLogEntry",
    "now_ms",
]
