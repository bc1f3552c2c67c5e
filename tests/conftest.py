"""
Pytest fixtures for ClipBook backend tests.

Everything runs against the in-memory document store; no Firebase project,
Redis or model API key is needed.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from clipbook.config import get_settings
from clipbook.main import app
from clipbook.models.clip import Clip, Playlist
from clipbook.services.chat_service import ChatService, get_chat_service
from clipbook.services.clip_service import ClipService, get_clip_service
from clipbook.services.context_builder import ContextBuilder
from clipbook.services.document_store import InMemoryDocumentStore, user_collection
from clipbook.services.playlist_service import PlaylistService, get_playlist_service
from clipbook.services.rate_limiter import InMemoryRateLimiter
from clipbook.services.responder_service import RuleBasedResponder
from clipbook.services.tagging_service import TaggingService


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer dev-token"}


@pytest.fixture
def user_id() -> str:
    return get_settings().dev_user_id


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory document store per test."""
    return InMemoryDocumentStore()


async def add_playlist(store: InMemoryDocumentStore, uid: str, name: str, created_at: int = 1) -> str:
    playlist = Playlist(name=name, created_at=created_at)
    return await store.add(user_collection(uid, "playlists"), playlist.to_document())


async def add_clip(store: InMemoryDocumentStore, uid: str, **fields) -> str:
    fields.setdefault("original_url", "https://www.youtube.com/watch?v=abc")
    clip = Clip(**fields)
    return await store.add(user_collection(uid, "clips"), clip.to_document())


async def seed_library(store: InMemoryDocumentStore, uid: str) -> dict[str, str]:
    """One playlist with three clips plus one clip outside any playlist."""
    playlist_id = await add_playlist(store, uid, "Python Basics")
    ids = {"playlist": playlist_id}
    ids["intro"] = await add_clip(
        store,
        uid,
        custom_title="Python Tutorial for Beginners",
        description="Variables, loops and functions",
        playlist_ids=[playlist_id],
        tags=["python", "tutorial"],
        created_at=1_000,
    )
    ids["pandas"] = await add_clip(
        store,
        uid,
        custom_title="Pandas Dataframes Explained",
        description="Data analysis with pandas",
        playlist_ids=[playlist_id],
        tags=["python", "data"],
        created_at=2_000,
    )
    ids["decorators"] = await add_clip(
        store,
        uid,
        custom_title="Python Decorators Deep Dive",
        description="Closures and decorators",
        playlist_ids=[playlist_id],
        tags=["python"],
        created_at=3_000,
    )
    ids["music"] = await add_clip(
        store,
        uid,
        custom_title="Lofi Music Mix",
        video_site="dailymotion",
        tags=["music"],
        created_at=4_000,
    )
    return ids


@pytest.fixture
def sample_library(store, user_id) -> dict[str, str]:
    """Seeded library for synchronous (TestClient) tests.

    Async tests use the ``seed`` fixture instead.
    """
    return asyncio.run(seed_library(store, user_id))


@pytest.fixture
def rate_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(max_requests=20, window_ms=60_000)


@pytest.fixture
def chat_service(store, rate_limiter) -> ChatService:
    return ChatService(
        store=store,
        rate_limiter=rate_limiter,
        context_builder=ContextBuilder(store),
        responder=RuleBasedResponder(),
    )


@pytest.fixture
def clip_service(store) -> ClipService:
    # No provider: auto tags come from the keyword fallback
    return ClipService(store, TaggingService(provider=None))


@pytest.fixture
def playlist_service(store) -> PlaylistService:
    return PlaylistService(store)


@pytest.fixture
def client(chat_service, clip_service, playlist_service):
    """TestClient wired to the per-test store."""
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    app.dependency_overrides[get_clip_service] = lambda: clip_service
    app.dependency_overrides[get_playlist_service] = lambda: playlist_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seed(store, user_id):
    """Async seeding for ``@pytest.mark.asyncio`` tests: ``ids = await seed()``."""
    return lambda: seed_library(store, user_id)


@pytest.fixture
def new_clip(store, user_id):
    """Async clip factory: ``clip_id = await new_clip(custom_title=...)``."""
    return lambda **fields: add_clip(store, user_id, **fields)


@pytest.fixture
def new_playlist(store, user_id):
    return lambda name, created_at=1: add_playlist(store, user_id, name, created_at)
