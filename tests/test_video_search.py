"""Tests for YouTube / Dailymotion search adapters and saving results as clips."""

import httpx
import pytest

from clipbook.exceptions import SearchNotConfiguredError, ValidationError, VideoSearchError
from clipbook.main import app
from clipbook.services.video_search import VideoSearchService, get_video_search_service

YOUTUBE_RESPONSE = {
    "items": [
        {
            "id": {"kind": "youtube#video", "videoId": "abc123"},
            "snippet": {
                "title": "Python Tutorial",
                "description": "Learn Python",
                "thumbnails": {"medium": {"url": "https://i.ytimg.com/vi/abc123/mqdefault.jpg"}},
            },
        },
        # Channels and playlists carry no videoId
        {"id": {"kind": "youtube#channel", "channelId": "c1"}, "snippet": {"title": "Channel"}},
    ]
}

DAILYMOTION_RESPONSE = {
    "list": [
        {
            "id": "x8abc",
            "title": "Sports Highlights",
            "description": "Best goals",
            "thumbnail_url": "https://s1.dmcdn.net/x8abc.jpg",
            "url": "https://www.dailymotion.com/video/x8abc",
        }
    ]
}


def search_service(handler, youtube_api_key: str = "yt_key") -> VideoSearchService:
    return VideoSearchService(
        youtube_api_key=youtube_api_key,
        max_results=8,
        transport=httpx.MockTransport(handler),
    )


class TestVideoSearchService:
    @pytest.mark.asyncio
    async def test_youtube(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["host"] = request.url.host
            return httpx.Response(200, json=YOUTUBE_RESPONSE)

        results = await search_service(handler).search("youtube", "python")

        assert seen["host"] == "www.googleapis.com"
        assert seen["params"] == {
            "part": "snippet",
            "type": "video",
            "maxResults": "8",
            "q": "python",
            "key": "yt_key",
        }
        assert len(results) == 1
        result = results[0]
        assert result.url == "https://www.youtube.com/watch?v=abc123"
        assert result.embed_url == "https://www.youtube.com/embed/abc123"
        assert result.thumbnail == "https://i.ytimg.com/vi/abc123/mqdefault.jpg"

    @pytest.mark.asyncio
    async def test_youtube_requires_key(self):
        service = search_service(lambda r: httpx.Response(200, json={}), youtube_api_key="")
        with pytest.raises(SearchNotConfiguredError):
            await service.search("youtube", "python")

    @pytest.mark.asyncio
    async def test_dailymotion(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=DAILYMOTION_RESPONSE)

        results = await search_service(handler, youtube_api_key="").search("dailymotion", "goals")

        assert seen["params"]["search"] == "goals"
        assert seen["params"]["fields"] == "id,title,description,thumbnail_url,url"
        assert results[0].embed_url == "https://www.dailymotion.com/embed/video/x8abc"
        assert results[0].site == "dailymotion"

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        service = search_service(lambda r: httpx.Response(403, text="quota exceeded"))
        with pytest.raises(VideoSearchError):
            await service.search("youtube", "python")

    @pytest.mark.asyncio
    async def test_blank_query(self):
        service = search_service(lambda r: httpx.Response(200, json={}))
        with pytest.raises(ValidationError):
            await service.search("dailymotion", "   ")


class TestSearchApi:
    def test_search_endpoint(self, client, auth_headers):
        service = search_service(lambda r: httpx.Response(200, json=DAILYMOTION_RESPONSE))
        app.dependency_overrides[get_video_search_service] = lambda: service

        response = client.get(
            "/api/search/dailymotion", params={"q": "goals"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()[0]["embedUrl"] == "https://www.dailymotion.com/embed/video/x8abc"

    def test_unknown_site(self, client, auth_headers):
        response = client.get("/api/search/vimeo", params={"q": "x"}, headers=auth_headers)
        assert response.status_code == 422

    def test_save_result_as_clip(self, client, auth_headers):
        result = {
            "id": "x8abc",
            "title": "Sports Highlights",
            "description": "Best goals",
            "url": "https://www.dailymotion.com/video/x8abc",
            "site": "dailymotion",
            "embedUrl": "https://www.dailymotion.com/embed/video/x8abc",
        }

        response = client.post("/api/search/save", json=result, headers=auth_headers)

        assert response.status_code == 201
        clip = response.json()
        assert clip["videoSite"] == "dailymotion"
        assert clip["embedable"] is True
        assert clip["customTitle"] == "Sports Highlights"
        assert clip["tags"] == ["sports"]
        assert clip["autoTagsGenerated"] is True
