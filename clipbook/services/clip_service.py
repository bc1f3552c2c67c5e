"""Clip library operations for one user."""

import logging
from collections import Counter

from pydantic.alias_generators import to_camel

from clipbook.exceptions import (
    ClipNotFoundError,
    InvalidTagError,
    PlaylistNotFoundError,
    TagLimitError,
)
from clipbook.models.clip import Clip
from clipbook.schemas.clip import ClipCreate, ClipUpdate, TagCount
from clipbook.services.document_store import (
    BaseDocumentStore,
    Filter,
    get_document_store,
    user_collection,
)
from clipbook.services.tagging_service import TaggingService, get_tagging_service
from clipbook.utils.tags import MAX_TAGS, normalize_tag, normalize_tags

logger = logging.getLogger(__name__)


class ClipService:
    def __init__(self, store: BaseDocumentStore, tagger: TaggingService) -> None:
        self.store = store
        self.tagger = tagger

    def _clips(self, user_id: str) -> str:
        return user_collection(user_id, "clips")

    async def list_clips(
        self,
        user_id: str,
        playlist_id: str | None = None,
        tag: str | None = None,
    ) -> list[Clip]:
        """Newest first, optionally restricted to a playlist and/or a tag."""
        filters: list[Filter] = []
        if playlist_id:
            filters.append(("playlistIds", "array-contains", playlist_id))
        docs = await self.store.query(
            self._clips(user_id), filters=filters, order_by="createdAt", descending=True
        )
        clips = [Clip.from_document(d.id, d.data) for d in docs]
        if tag:
            # Second array-contains is not allowed in one Firestore query
            wanted = normalize_tag(tag)
            clips = [c for c in clips if wanted in c.tags]
        return clips

    async def get_clip(self, user_id: str, clip_id: str) -> Clip:
        doc = await self.store.get(self._clips(user_id), clip_id)
        if doc is None:
            raise ClipNotFoundError(clip_id)
        return Clip.from_document(doc.id, doc.data)

    async def create_clip(self, user_id: str, data: ClipCreate) -> Clip:
        if data.tags is None:
            tags = await self.tagger.generate_tags(data.custom_title, data.description)
            auto_generated = True
        else:
            tags = normalize_tags(data.tags)
            auto_generated = False

        for playlist_id in data.playlist_ids:
            await self._require_playlist(user_id, playlist_id)

        clip = Clip(
            **data.model_dump(exclude={"tags"}),
            tags=tags,
            auto_tags_generated=auto_generated,
        )
        clip.id = await self.store.add(self._clips(user_id), clip.to_document())
        logger.info(f"Saved clip {clip.id} for user {user_id} (tags={clip.tags})")
        return clip

    async def update_clip(self, user_id: str, clip_id: str, data: ClipUpdate) -> Clip:
        clip = await self.get_clip(user_id, clip_id)
        changes = data.model_dump(exclude_unset=True)
        for field_name in ("custom_title", "description"):
            # Empty string clears the field
            if field_name in changes and changes[field_name] == "":
                changes[field_name] = None
        if changes.get("watched", False) is None:
            # watched is not nullable; an explicit null leaves it unchanged
            del changes["watched"]
        if not changes:
            return clip

        updated = Clip.model_validate({**clip.model_dump(), **changes})
        fields = {to_camel(name): getattr(updated, name) for name in changes}
        await self.store.update(self._clips(user_id), clip_id, fields)
        return updated

    async def delete_clip(self, user_id: str, clip_id: str) -> None:
        await self.get_clip(user_id, clip_id)
        await self.store.delete(self._clips(user_id), clip_id)
        logger.info(f"Deleted clip {clip_id} for user {user_id}")

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    async def _save_tags(self, user_id: str, clip: Clip, tags: list[str]) -> Clip:
        clip.tags = normalize_tags(tags)
        await self.store.update(self._clips(user_id), clip.id, {"tags": clip.tags})
        return clip

    async def add_tag(self, user_id: str, clip_id: str, tag: str) -> Clip:
        clip = await self.get_clip(user_id, clip_id)
        normalized = normalize_tag(tag)
        if not normalized:
            raise InvalidTagError()
        if normalized in clip.tags:
            return clip
        if len(clip.tags) >= MAX_TAGS:
            raise TagLimitError()
        return await self._save_tags(user_id, clip, [*clip.tags, normalized])

    async def remove_tag(self, user_id: str, clip_id: str, tag: str) -> Clip:
        clip = await self.get_clip(user_id, clip_id)
        normalized = normalize_tag(tag)
        if normalized not in clip.tags:
            return clip
        return await self._save_tags(user_id, clip, [t for t in clip.tags if t != normalized])

    async def replace_tag(self, user_id: str, clip_id: str, old_tag: str, new_tag: str) -> Clip:
        """Swap ``old_tag`` for ``new_tag`` in place; a duplicate new tag just drops the old one."""
        clip = await self.get_clip(user_id, clip_id)
        old, new = normalize_tag(old_tag), normalize_tag(new_tag)
        if not new:
            raise InvalidTagError()
        if old not in clip.tags:
            raise InvalidTagError(f"Clip does not have tag: {old}")
        tags = [new if t == old else t for t in clip.tags]
        return await self._save_tags(user_id, clip, tags)

    async def tag_counts(
        self, user_id: str, playlist_id: str | None = None, tag: str | None = None
    ) -> list[TagCount]:
        """Tag usage over the filtered library, most used first."""
        clips = await self.list_clips(user_id, playlist_id=playlist_id, tag=tag)
        counts = Counter(t for c in clips for t in c.tags)
        return [TagCount(tag=t, count=n) for t, n in counts.most_common()]

    # -------------------------------------------------------------------------
    # Playlist membership
    # -------------------------------------------------------------------------

    async def _require_playlist(self, user_id: str, playlist_id: str) -> None:
        if await self.store.get(user_collection(user_id, "playlists"), playlist_id) is None:
            raise PlaylistNotFoundError(playlist_id)

    async def add_to_playlist(self, user_id: str, clip_id: str, playlist_id: str) -> Clip:
        clip = await self.get_clip(user_id, clip_id)
        await self._require_playlist(user_id, playlist_id)
        if playlist_id in clip.playlist_ids:
            return clip
        clip.playlist_ids = [*clip.playlist_ids, playlist_id]
        await self.store.update(self._clips(user_id), clip_id, {"playlistIds": clip.playlist_ids})
        return clip

    async def remove_from_playlist(self, user_id: str, clip_id: str, playlist_id: str) -> Clip:
        clip = await self.get_clip(user_id, clip_id)
        if playlist_id not in clip.playlist_ids:
            return clip
        clip.playlist_ids = [p for p in clip.playlist_ids if p != playlist_id]
        await self.store.update(self._clips(user_id), clip_id, {"playlistIds": clip.playlist_ids})
        return clip


def get_clip_service() -> ClipService:
    return ClipService(get_document_store(), get_tagging_service())
