from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from clipbook.schemas.clip import ClipCreate

SearchSite = Literal["youtube", "dailymotion"]


class VideoSearchResult(BaseModel):
    """One hit from a third-party video search, normalized across providers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str = ""
    description: str = ""
    thumbnail: str | None = None
    url: str
    site: SearchSite
    embed_url: str

    def to_clip_create(self) -> ClipCreate:
        """Clip payload for saving this result; tags are left for the tagger."""
        return ClipCreate(
            original_url=self.url,
            video_site=self.site,
            embed_url=self.embed_url,
            embedable=True,
            watch_url=self.url,
            custom_title=self.title or None,
            description=self.description or None,
            thumbnail_url=self.thumbnail,
        )
