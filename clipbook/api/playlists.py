"""API endpoints for playlists."""

from fastapi import APIRouter, status

from clipbook.api.deps import CurrentUser, Playlists
from clipbook.models.clip import Playlist
from clipbook.schemas.playlist import PlaylistCreate

router = APIRouter()


@router.get("/playlists", response_model=list[Playlist])
async def list_playlists(current_user: CurrentUser, playlist_service: Playlists) -> list[Playlist]:
    return await playlist_service.list_playlists(current_user.uid)


@router.post("/playlists", response_model=Playlist, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    data: PlaylistCreate,
    current_user: CurrentUser,
    playlist_service: Playlists,
) -> Playlist:
    return await playlist_service.create_playlist(current_user.uid, data.name)


@router.delete("/playlists/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(
    playlist_id: str,
    current_user: CurrentUser,
    playlist_service: Playlists,
) -> None:
    """Delete a playlist. Its clips stay in the library."""
    await playlist_service.delete_playlist(current_user.uid, playlist_id)
