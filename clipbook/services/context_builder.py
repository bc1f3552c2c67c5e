"""Library context for the chat assistant.

Builds a bounded plain-text snapshot of a user's playlist (or whole library)
to inject into model prompts, and hands the loaded clips to the rule-based
responder.

Two renderings:
- Playlist: name + one numbered line per clip (description snippet 80 chars)
- Profile: totals, per-site counts, top tags, playlist names, recent clips

Read failures never propagate: they are logged and produce an empty context.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field

from clipbook.models.clip import Clip, Playlist
from clipbook.services.document_store import BaseDocumentStore, user_collection
from clipbook.utils.text import format_timestamp, truncate

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n…(truncated)"
NO_CLIPS_MARKER = "(no clips)"

PLAYLIST_DESCRIPTION_CHARS = 80
PROFILE_TITLE_CHARS = 140
PROFILE_DESCRIPTION_CHARS = 240
PROFILE_TOP_TAGS = 6
PROFILE_PLAYLIST_NAMES = 20


@dataclass
class ChatContext:
    """What a responder gets to work with for one message."""

    text: str = ""
    playlist: Playlist | None = None
    clips: list[Clip] = field(default_factory=list)
    playlists: list[Playlist] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "ChatContext":
        return cls()


def cap_context(text: str, max_chars: int) -> str:
    """Bound ``text`` to ``max_chars``; a cut result always ends with the marker."""
    if len(text) <= max_chars:
        return text
    keep = max(max_chars - len(TRUNCATION_MARKER), 0)
    return text[:keep] + TRUNCATION_MARKER


def render_playlist_context(playlist: Playlist, clips: list[Clip]) -> str:
    lines = [f"Playlist: {playlist.name}"]
    if not clips:
        lines.append(NO_CLIPS_MARKER)
    for i, clip in enumerate(clips, start=1):
        lines.append(
            f"{i}. {clip.title} - {truncate(clip.description, PLAYLIST_DESCRIPTION_CHARS)}"
        )
    return "\n".join(lines)


def render_profile_context(
    user_id: str,
    clips: list[Clip],
    playlists: list[Playlist],
    sample_size: int = 12,
) -> str:
    site_counts = Counter(c.video_site or "unknown" for c in clips)
    tag_counts = Counter(tag for c in clips for tag in c.tags)
    top_tags = [f"{tag}({count})" for tag, count in tag_counts.most_common(PROFILE_TOP_TAGS)]
    playlist_names = [p.name for p in playlists[:PROFILE_PLAYLIST_NAMES]]
    by_site = ", ".join(f"{site}:{n}" for site, n in site_counts.items())

    lines = [
        f"User: {user_id}",
        f"TotalClips: {len(clips)}; Playlists: {len(playlists)};",
        f"BySite: {by_site or 'none'}",
        f"TopTags: {', '.join(top_tags) or 'none'}",
        f"Playlists: {' | '.join(playlist_names) or 'none'}",
        "SampleClips:",
    ]
    if not clips:
        lines.append(NO_CLIPS_MARKER)

    recent = sorted(clips, key=lambda c: c.created_at, reverse=True)[:sample_size]
    for clip in recent:
        lines.append(
            f"- [{clip.id}] Title: {truncate(clip.title, PROFILE_TITLE_CHARS)}; "
            f"Date: {format_timestamp(clip.created_at)}; "
            f"Playlists: {','.join(clip.playlist_ids)}; "
            f"Tags: {','.join(clip.tags)}; "
            f"URL: {clip.link}"
        )
        if clip.description:
            lines.append(f"  Desc: {truncate(clip.description, PROFILE_DESCRIPTION_CHARS)}")
    return "\n".join(lines)


class ContextBuilder:
    """Loads library data from the document store and renders chat context."""

    def __init__(
        self,
        store: BaseDocumentStore,
        max_chars: int = 18_000,
        clip_limit: int = 25,
        library_scan_limit: int = 200,
        sample_clips: int = 12,
    ) -> None:
        self.store = store
        self.max_chars = max_chars
        self.clip_limit = clip_limit
        self.library_scan_limit = library_scan_limit
        self.sample_clips = sample_clips

    async def build_context(self, user_id: str, playlist_id: str | None = None) -> str:
        """Bounded text snapshot; empty string when nothing could be read."""
        return (await self.gather(user_id, playlist_id)).text

    async def gather(self, user_id: str, playlist_id: str | None = None) -> ChatContext:
        try:
            if playlist_id:
                return await self._gather_playlist(user_id, playlist_id)
            return await self._gather_profile(user_id)
        except Exception:
            logger.exception(
                f"Failed to build chat context for user={user_id} playlist={playlist_id}"
            )
            return ChatContext.empty()

    async def _gather_playlist(self, user_id: str, playlist_id: str) -> ChatContext:
        doc = await self.store.get(user_collection(user_id, "playlists"), playlist_id)
        if doc is None:
            logger.warning(f"Playlist {playlist_id} not found for user {user_id}")
            return ChatContext.empty()
        playlist = Playlist.from_document(doc.id, doc.data)

        docs = await self.store.query(
            user_collection(user_id, "clips"),
            filters=[("playlistIds", "array-contains", playlist_id)],
            order_by="createdAt",
            descending=True,
            limit=self.clip_limit,
        )
        clips = [Clip.from_document(d.id, d.data) for d in docs]
        text = cap_context(render_playlist_context(playlist, clips), self.max_chars)
        return ChatContext(text=text, playlist=playlist, clips=clips, playlists=[playlist])

    async def _gather_profile(self, user_id: str) -> ChatContext:
        clip_docs = await self.store.query(
            user_collection(user_id, "clips"),
            order_by="createdAt",
            descending=True,
            limit=self.library_scan_limit,
        )
        playlist_docs = await self.store.query(
            user_collection(user_id, "playlists"),
            order_by="createdAt",
            descending=True,
        )
        clips = [Clip.from_document(d.id, d.data) for d in clip_docs]
        playlists = [Playlist.from_document(d.id, d.data) for d in playlist_docs]
        text = cap_context(
            render_profile_context(user_id, clips, playlists, self.sample_clips),
            self.max_chars,
        )
        # Rule-based answers work over the same recent slice the playlist mode uses
        return ChatContext(text=text, clips=clips[: self.clip_limit], playlists=playlists)
