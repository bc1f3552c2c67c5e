"""Custom exceptions for the ClipBook backend.

Every exception carries a machine-readable code (see
``clipbook.constants.error_codes``) and the HTTP status the API handler
should answer with.
"""

from clipbook.constants.error_codes import get_error_spec
from clipbook.schemas.error import ErrorInfo


class ClipBookError(Exception):
    """Base exception for all ClipBook application errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        suggested_fix: str | None = None,
    ):
        self.message = message or self.__class__.message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.suggested_fix = suggested_fix
        super().__init__(self.message)

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo for API response."""
        spec = get_error_spec(self.code)
        return ErrorInfo(
            error=self.message,
            code=self.code,
            retryable=spec.get("retryable", False),
            suggested_fix=self.suggested_fix or spec.get("suggested_fix"),
        )


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class ResourceNotFoundError(ClipBookError):
    """Base class for resource not found errors."""

    status_code = 404


class DocumentNotFoundError(ResourceNotFoundError):
    """A document path does not exist in the store."""

    code = "DOCUMENT_NOT_FOUND"
    message = "Document not found"

    def __init__(self, path: str | None = None):
        message = f"Document not found: {path}" if path else self.message
        super().__init__(message)


class ClipNotFoundError(ResourceNotFoundError):
    """Clip not found."""

    code = "CLIP_NOT_FOUND"
    message = "Clip not found"

    def __init__(self, clip_id: str | None = None):
        message = f"Clip not found: {clip_id}" if clip_id else self.message
        super().__init__(message)


class PlaylistNotFoundError(ResourceNotFoundError):
    """Playlist not found."""

    code = "PLAYLIST_NOT_FOUND"
    message = "Playlist not found"

    def __init__(self, playlist_id: str | None = None):
        message = f"Playlist not found: {playlist_id}" if playlist_id else self.message
        super().__init__(message)


class ConversationNotFoundError(ResourceNotFoundError):
    """Chat conversation not found."""

    code = "CONVERSATION_NOT_FOUND"
    message = "Conversation not found"

    def __init__(self, conversation_id: str | None = None):
        message = (
            f"Conversation not found: {conversation_id}" if conversation_id else self.message
        )
        super().__init__(message)


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(ClipBookError):
    """Base class for validation errors."""

    code = "VALIDATION_ERROR"
    status_code = 400


class TagLimitError(ValidationError):
    """Clip already carries the maximum number of tags."""

    code = "TAG_LIMIT_EXCEEDED"
    message = "Maximum 3 tags allowed per clip"


class InvalidTagError(ValidationError):
    """Tag is empty after normalization."""

    code = "INVALID_TAG"
    message = "Tag must not be empty"


# =============================================================================
# Upstream Errors (502 / 503)
# =============================================================================


class UpstreamModelError(ClipBookError):
    """Hosted model request failed (non-2xx, timeout or transport error)."""

    code = "UPSTREAM_MODEL_ERROR"
    status_code = 502
    message = "Model request failed"

    def __init__(self, message: str | None = None, *, upstream_status: int | None = None):
        self.upstream_status = upstream_status
        super().__init__(message)


class ModelNotConfiguredError(UpstreamModelError):
    """Provider API key is missing."""

    code = "MODEL_NOT_CONFIGURED"
    status_code = 500
    message = "Model provider API key is not configured"


class VideoSearchError(ClipBookError):
    """Third-party video search request failed."""

    code = "VIDEO_SEARCH_ERROR"
    status_code = 502
    message = "Video search failed"


class SearchNotConfiguredError(VideoSearchError):
    code = "SEARCH_NOT_CONFIGURED"
    status_code = 503
    message = "Video search API key is not configured"


class DocumentStoreError(ClipBookError):
    """Document store read/write failed."""

    code = "DOCUMENT_STORE_ERROR"
    status_code = 503
    message = "Document store unavailable"
