"""Third-party video search (YouTube Data API v3, Dailymotion REST).

Both adapters return ``VideoSearchResult`` with embed and watch URLs filled in,
so a hit can be saved as a clip without further URL handling.
"""

import logging
from typing import Any

import httpx

from clipbook.config import get_settings
from clipbook.exceptions import SearchNotConfiguredError, ValidationError, VideoSearchError
from clipbook.schemas.search import SearchSite, VideoSearchResult

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
DAILYMOTION_SEARCH_URL = "https://api.dailymotion.com/videos"


class VideoSearchService:
    def __init__(
        self,
        youtube_api_key: str = "",
        max_results: int = 8,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.youtube_api_key = youtube_api_key
        self.max_results = max_results
        self.timeout = timeout
        self._transport = transport

    async def search(self, site: SearchSite, query: str) -> list[VideoSearchResult]:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query must not be empty")
        if site == "youtube":
            return await self.search_youtube(query)
        return await self.search_dailymotion(query)

    async def _get(self, site: str, url: str, params: dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"{site} search timeout")
            raise VideoSearchError(f"{site} search timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{site} search transport error: {e}")
            raise VideoSearchError(f"{site} search failed: {e}") from e

        if not response.is_success:
            logger.error(f"{site} search error: {response.status_code} - {response.text}")
            raise VideoSearchError(f"{site} search failed with HTTP {response.status_code}")
        return response.json()

    async def search_youtube(self, query: str) -> list[VideoSearchResult]:
        if not self.youtube_api_key:
            raise SearchNotConfiguredError("YouTube API key is not configured")

        data = await self._get(
            "YouTube",
            YOUTUBE_SEARCH_URL,
            {
                "part": "snippet",
                "type": "video",
                "maxResults": self.max_results,
                "q": query,
                "key": self.youtube_api_key,
            },
        )
        results = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            thumbnails = snippet.get("thumbnails") or {}
            thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")
            results.append(
                VideoSearchResult(
                    id=video_id,
                    title=snippet.get("title") or "",
                    description=snippet.get("description") or "",
                    thumbnail=thumbnail,
                    url=f"https://www.youtube.com/watch?v={video_id}",
                    site="youtube",
                    embed_url=f"https://www.youtube.com/embed/{video_id}",
                )
            )
        return results

    async def search_dailymotion(self, query: str) -> list[VideoSearchResult]:
        data = await self._get(
            "Dailymotion",
            DAILYMOTION_SEARCH_URL,
            {
                "search": query,
                "limit": self.max_results,
                "fields": "id,title,description,thumbnail_url,url",
            },
        )
        results = []
        for item in data.get("list", []):
            video_id = item.get("id")
            if not video_id:
                continue
            results.append(
                VideoSearchResult(
                    id=video_id,
                    title=item.get("title") or "",
                    description=item.get("description") or "",
                    thumbnail=item.get("thumbnail_url"),
                    url=item.get("url") or f"https://www.dailymotion.com/video/{video_id}",
                    site="dailymotion",
                    embed_url=f"https://www.dailymotion.com/embed/video/{video_id}",
                )
            )
        return results


def get_video_search_service() -> VideoSearchService:
    settings = get_settings()
    return VideoSearchService(
        youtube_api_key=settings.youtube_api_key,
        max_results=settings.search_max_results,
        timeout=settings.search_timeout_seconds,
    )
