"""Video search endpoints (YouTube, Dailymotion) and saving a hit as a clip."""

from fastapi import APIRouter, Query, status

from clipbook.api.deps import Clips, CurrentUser, VideoSearch
from clipbook.models.clip import Clip
from clipbook.schemas.search import SearchSite, VideoSearchResult

router = APIRouter()


@router.get("/search/{site}", response_model=list[VideoSearchResult])
async def search_videos(
    site: SearchSite,
    current_user: CurrentUser,
    search_service: VideoSearch,
    q: str = Query(..., min_length=1),
) -> list[VideoSearchResult]:
    return await search_service.search(site, q)


@router.post("/search/save", response_model=Clip, status_code=status.HTTP_201_CREATED)
async def save_search_result(
    result: VideoSearchResult,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    """Save a search hit as a clip with generated tags."""
    return await clip_service.create_clip(current_user.uid, result.to_clip_create())
