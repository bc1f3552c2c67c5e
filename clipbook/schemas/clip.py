from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ClipCreate(BaseModel):
    """Save a clip. Embed fields are supplied by the caller."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    original_url: str = Field(..., min_length=1)
    video_site: str = "unknown"
    embed_url: str | None = None
    embedable: bool = False
    watch_url: str | None = None
    custom_title: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    playlist_ids: list[str] = Field(default_factory=list)
    tags: list[str] | None = Field(
        default=None, description="Explicit tags. When omitted, tags are generated."
    )
    duration: float | None = Field(default=None, ge=0)


class ClipUpdate(BaseModel):
    """Edit title/description/watched state. Empty strings clear the text fields."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    custom_title: str | None = None
    description: str | None = None
    watched: bool | None = None
    duration: float | None = Field(default=None, ge=0)


class TagRequest(BaseModel):
    tag: str


class TagCount(BaseModel):
    tag: str
    count: int
