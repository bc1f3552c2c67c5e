"""Clip and playlist documents as stored under ``users/{uid}/...``.

Field names on the wire and in the store are camelCase; Python code uses
snake_case attributes.
"""

import time
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from clipbook.utils.tags import normalize_tags


def now_ms() -> int:
    """Current time as epoch milliseconds (the store's createdAt unit)."""
    return int(time.time() * 1000)


class StoredDocument(BaseModel):
    """Base for documents read from / written to the document store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = ""

    @field_validator("created_at", mode="before", check_fields=False)
    @classmethod
    def _timestamp_to_ms(cls, v: Any) -> Any:
        # Firestore serverTimestamp() values come back as datetimes
        if isinstance(v, datetime):
            if v.tzinfo is None:
                v = v.replace(tzinfo=UTC)
            return int(v.timestamp() * 1000)
        return v

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]):
        return cls.model_validate({**data, "id": doc_id})

    def to_document(self) -> dict[str, Any]:
        """Serialize for the store. The id is the document key, not a field."""
        return self.model_dump(by_alias=True, exclude={"id"})


class Clip(StoredDocument):
    """A saved reference to an external video."""

    original_url: str
    video_site: str = "unknown"
    embed_url: str | None = None
    embedable: bool = False
    watch_url: str | None = None
    custom_title: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    playlist_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    auto_tags_generated: bool = False
    duration: float | None = None  # seconds, when known
    watched: bool = False
    created_at: int = Field(default_factory=now_ms)

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, v: Any) -> list[str]:
        return normalize_tags(v)

    @field_validator("playlist_ids", mode="before")
    @classmethod
    def _dedupe_playlists(cls, v: Any) -> list[str]:
        seen: list[str] = []
        for pid in v or []:
            if pid and pid not in seen:
                seen.append(pid)
        return seen

    @property
    def title(self) -> str:
        """Display title: custom title, falling back to the original URL."""
        return self.custom_title or self.original_url or "Untitled"

    @property
    def link(self) -> str:
        return self.watch_url or self.original_url or ""


class Playlist(StoredDocument):
    """A named, user-owned grouping of clips."""

    name: str
    created_at: int = Field(default_factory=now_ms)
