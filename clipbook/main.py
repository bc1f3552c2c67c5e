import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clipbook.api import chat, clips, playlists, search
from clipbook.config import get_settings
from clipbook.constants.error_codes import get_error_spec
from clipbook.exceptions import ClipBookError
from clipbook.schemas.error import ErrorInfo
from clipbook.services.document_store import get_document_store
from clipbook.services.rate_limiter import get_rate_limiter

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: resolve store and limiter backends
    get_document_store()
    get_rate_limiter()
    logger.info(
        f"{settings.app_name} {settings.app_version} started "
        f"(environment={settings.environment}, responder={settings.chat_responder})"
    )
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error_code(status_code: int) -> str:
    mapping = {
        400: "VALIDATION_ERROR",
        401: "UNAUTHORIZED",
        404: "DOCUMENT_NOT_FOUND",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
    }
    return mapping.get(status_code, "INTERNAL_ERROR")


def _error_response(status_code: int, error: ErrorInfo, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(ClipBookError)
async def clipbook_exception_handler(request: Request, exc: ClipBookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return _error_response(exc.status_code, exc.to_error_info())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request validation errors (422) in the common error body."""
    # Build a human-readable message from validation errors
    errors = exc.errors()
    if errors:
        first_error = errors[0]
        loc = " -> ".join(str(x) for x in first_error.get("loc", []))
        msg = first_error.get("msg", "Validation error")
        message = f"{loc}: {msg}" if loc else msg
    else:
        message = "Request validation failed"

    spec = get_error_spec("VALIDATION_ERROR")
    error = ErrorInfo(
        error=message,
        code="VALIDATION_ERROR",
        retryable=spec.get("retryable", False),
        suggested_fix=spec.get("suggested_fix"),
    )
    return _error_response(422, error)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    error_code = _http_error_code(exc.status_code)
    spec = get_error_spec(error_code)
    error = ErrorInfo(
        error=str(exc.detail),
        code=error_code,
        retryable=spec.get("retryable", False),
        suggested_fix=spec.get("suggested_fix"),
    )
    return _error_response(exc.status_code, error, headers=getattr(exc, "headers", None))


# Global exception handler to ensure errors return proper JSON
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(500, ErrorInfo(error="Internal server error", code="INTERNAL_ERROR"))


# Routers
app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(chat.proxy_router, tags=["chat"])
app.include_router(clips.router, prefix="/api", tags=["clips"])
app.include_router(playlists.router, prefix="/api", tags=["playlists"])
app.include_router(search.router, prefix="/api", tags=["search"])


@app.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok", "service": settings.app_name}


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy", "version": settings.app_version}
