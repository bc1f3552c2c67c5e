import logging

from clipbook.exceptions import PlaylistNotFoundError
from clipbook.models.clip import Playlist
from clipbook.services.document_store import (
    BaseDocumentStore,
    get_document_store,
    user_collection,
)

logger = logging.getLogger(__name__)


class PlaylistService:
    def __init__(self, store: BaseDocumentStore) -> None:
        self.store = store

    async def list_playlists(self, user_id: str) -> list[Playlist]:
        docs = await self.store.query(
            user_collection(user_id, "playlists"), order_by="createdAt", descending=True
        )
        return [Playlist.from_document(d.id, d.data) for d in docs]

    async def create_playlist(self, user_id: str, name: str) -> Playlist:
        playlist = Playlist(name=name)
        playlist.id = await self.store.add(
            user_collection(user_id, "playlists"), playlist.to_document()
        )
        logger.info(f"Created playlist {playlist.id} ({name!r}) for user {user_id}")
        return playlist

    async def delete_playlist(self, user_id: str, playlist_id: str) -> int:
        """Delete a playlist and detach it from its clips. Returns the number of clips detached.

        Clips themselves are kept.
        """
        collection = user_collection(user_id, "playlists")
        if await self.store.get(collection, playlist_id) is None:
            raise PlaylistNotFoundError(playlist_id)

        clips_path = user_collection(user_id, "clips")
        members = await self.store.query(
            clips_path, filters=[("playlistIds", "array-contains", playlist_id)]
        )
        for doc in members:
            remaining = [p for p in doc.data.get("playlistIds", []) if p != playlist_id]
            await self.store.update(clips_path, doc.id, {"playlistIds": remaining})

        await self.store.delete(collection, playlist_id)
        logger.info(
            f"Deleted playlist {playlist_id} for user {user_id}, detached {len(members)} clips"
        )
        return len(members)


def get_playlist_service() -> PlaylistService:
    return PlaylistService(get_document_store())
