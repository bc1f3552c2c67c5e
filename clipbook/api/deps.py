from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth

from clipbook.config import get_settings
from clipbook.services.chat_service import ChatService, get_chat_service
from clipbook.services.clip_service import ClipService, get_clip_service
from clipbook.services.firebase_app import get_firebase_app
from clipbook.services.playlist_service import PlaylistService, get_playlist_service
from clipbook.services.video_search import VideoSearchService, get_video_search_service

# Use auto_error=False to allow dev token bypass
security = HTTPBearer(auto_error=False)

# DEV_USER token constant
DEV_TOKEN = "dev-token"


@dataclass
class AuthenticatedUser:
    """Firebase user the request acts for. Every document path is scoped by ``uid``."""

    uid: str
    email: str = ""


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> AuthenticatedUser:
    """Authenticate with a Firebase ID token (``Authorization: Bearer``).

    In dev mode the ``dev-token`` token, or no token at all, maps to the
    configured dev user.
    """
    settings = get_settings()

    if settings.dev_mode:
        token = credentials.credentials if credentials else None
        if token == DEV_TOKEN or token is None:
            return AuthenticatedUser(uid=settings.dev_user_id, email=settings.dev_user_email)

    # Require credentials in production
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        # Initialize Firebase if needed
        get_firebase_app()
        decoded_token = firebase_auth.verify_id_token(credentials.credentials)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication token: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(uid=decoded_token["uid"], email=decoded_token.get("email", ""))


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
Chat = Annotated[ChatService, Depends(get_chat_service)]
Clips = Annotated[ClipService, Depends(get_clip_service)]
Playlists = Annotated[PlaylistService, Depends(get_playlist_service)]
VideoSearch = Annotated[VideoSearchService, Depends(get_video_search_service)]
