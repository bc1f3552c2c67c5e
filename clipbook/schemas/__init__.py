from clipbook.schemas.chat import ChatReply, ChatRequest, ModelReply, ProxyRequest, ProxyResponse
from clipbook.schemas.clip import ClipCreate, ClipUpdate, TagCount, TagRequest
from clipbook.schemas.error import ErrorInfo
from clipbook.schemas.playlist import PlaylistCreate
from clipbook.schemas.search import VideoSearchResult

__all__ = [
    "ChatRequest",
    "ChatReply",
    "ModelReply",
    "ProxyRequest",
    "ProxyResponse",
    "ClipCreate",
    "ClipUpdate",
    "TagRequest",
    "TagCount",
    "ErrorInfo",
    "PlaylistCreate",
    "VideoSearchResult",
]
