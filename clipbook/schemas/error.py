from pydantic import BaseModel


class ErrorInfo(BaseModel):
    """Error body returned by every non-chat endpoint."""

    error: str
    code: str
    retryable: bool = False
    suggested_fix: str | None = None
