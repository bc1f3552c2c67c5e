"""Error codes dictionary for the ClipBook API.

Single source of truth for error codes, their retryability and a short
human-readable fix. Used by the exception handler to build error bodies.
"""

from typing import TypedDict


class ErrorCodeSpec(TypedDict, total=False):
    """Specification for an error code."""

    retryable: bool
    suggested_fix: str


ERROR_CODES: dict[str, ErrorCodeSpec] = {
    # ==========================================================================
    # Resource errors
    # ==========================================================================
    "CLIP_NOT_FOUND": {
        "retryable": False,
        "suggested_fix": "Reload the clip list; the clip may have been deleted",
    },
    "PLAYLIST_NOT_FOUND": {
        "retryable": False,
        "suggested_fix": "Reload the playlist list; the playlist may have been deleted",
    },
    "CONVERSATION_NOT_FOUND": {
        "retryable": False,
        "suggested_fix": "Start a new conversation with POST /api/chats",
    },
    "DOCUMENT_NOT_FOUND": {
        "retryable": False,
    },
    # ==========================================================================
    # Validation errors (not retryable, fix input)
    # ==========================================================================
    "VALIDATION_ERROR": {
        "retryable": False,
    },
    "TAG_LIMIT_EXCEEDED": {
        "retryable": False,
        "suggested_fix": "Remove a tag before adding another (max 3 per clip)",
    },
    "INVALID_TAG": {
        "retryable": False,
    },
    # ==========================================================================
    # Upstream services
    # ==========================================================================
    "UPSTREAM_MODEL_ERROR": {
        "retryable": True,
    },
    "MODEL_NOT_CONFIGURED": {
        "retryable": False,
        "suggested_fix": "Set HF_API_KEY or GROQ_API_KEY in the environment",
    },
    "VIDEO_SEARCH_ERROR": {
        "retryable": True,
    },
    "SEARCH_NOT_CONFIGURED": {
        "retryable": False,
        "suggested_fix": "Set YOUTUBE_API_KEY in the environment",
    },
    "DOCUMENT_STORE_ERROR": {
        "retryable": True,
    },
    # ==========================================================================
    # Auth / generic
    # ==========================================================================
    "UNAUTHORIZED": {
        "retryable": False,
    },
    "INTERNAL_ERROR": {
        "retryable": False,
    },
}


def get_error_spec(code: str) -> ErrorCodeSpec:
    """Get error specification by code.

    Args:
        code: The error code

    Returns:
        ErrorCodeSpec with retryable flag and optional fix hint
    """
    return ERROR_CODES.get(code, {"retryable": False})


def is_retryable(code: str) -> bool:
    return get_error_spec(code).get("retryable", False)
