"""API endpoints for clips, their tags and playlist membership."""

import logging

from fastapi import APIRouter, Query, status

from clipbook.api.deps import Clips, CurrentUser
from clipbook.models.clip import Clip
from clipbook.schemas.clip import ClipCreate, ClipUpdate, TagCount, TagRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/clips", response_model=list[Clip])
async def list_clips(
    current_user: CurrentUser,
    clip_service: Clips,
    playlist_id: str | None = Query(default=None, alias="playlistId"),
    tag: str | None = Query(default=None),
) -> list[Clip]:
    """List clips newest first, optionally filtered by playlist and tag."""
    return await clip_service.list_clips(current_user.uid, playlist_id=playlist_id, tag=tag)


@router.post("/clips", response_model=Clip, status_code=status.HTTP_201_CREATED)
async def create_clip(
    data: ClipCreate,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    """Save a clip. Tags are generated when the request carries none."""
    return await clip_service.create_clip(current_user.uid, data)


@router.get("/clips/{clip_id}", response_model=Clip)
async def get_clip(clip_id: str, current_user: CurrentUser, clip_service: Clips) -> Clip:
    return await clip_service.get_clip(current_user.uid, clip_id)


@router.patch("/clips/{clip_id}", response_model=Clip)
async def update_clip(
    clip_id: str,
    data: ClipUpdate,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    return await clip_service.update_clip(current_user.uid, clip_id, data)


@router.delete("/clips/{clip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_clip(clip_id: str, current_user: CurrentUser, clip_service: Clips) -> None:
    await clip_service.delete_clip(current_user.uid, clip_id)


@router.post("/clips/{clip_id}/tags", response_model=Clip)
async def add_tag(
    clip_id: str,
    data: TagRequest,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    """Add a tag. 400 when the clip already has 3 tags."""
    return await clip_service.add_tag(current_user.uid, clip_id, data.tag)


@router.put("/clips/{clip_id}/tags/{tag}", response_model=Clip)
async def replace_tag(
    clip_id: str,
    tag: str,
    data: TagRequest,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    """Replace ``tag`` with the tag in the body."""
    return await clip_service.replace_tag(current_user.uid, clip_id, tag, data.tag)


@router.delete("/clips/{clip_id}/tags/{tag}", response_model=Clip)
async def remove_tag(
    clip_id: str,
    tag: str,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    return await clip_service.remove_tag(current_user.uid, clip_id, tag)


@router.put("/clips/{clip_id}/playlists/{playlist_id}", response_model=Clip)
async def add_to_playlist(
    clip_id: str,
    playlist_id: str,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    return await clip_service.add_to_playlist(current_user.uid, clip_id, playlist_id)


@router.delete("/clips/{clip_id}/playlists/{playlist_id}", response_model=Clip)
async def remove_from_playlist(
    clip_id: str,
    playlist_id: str,
    current_user: CurrentUser,
    clip_service: Clips,
) -> Clip:
    return await clip_service.remove_from_playlist(current_user.uid, clip_id, playlist_id)


@router.get("/tags", response_model=list[TagCount])
async def list_tags(
    current_user: CurrentUser,
    clip_service: Clips,
    playlist_id: str | None = Query(default=None, alias="playlistId"),
    tag: str | None = Query(default=None),
) -> list[TagCount]:
    """Tag usage counts over the (filtered) library."""
    return await clip_service.tag_counts(current_user.uid, playlist_id=playlist_id, tag=tag)
