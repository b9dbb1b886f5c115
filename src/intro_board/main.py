# src/intro_board/main.py
"""Main entry point for the Intro Board application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from intro_board.api.v1 import auth_router, moderation_router, posts_router
from intro_board.api.v1.dependencies import get_post_store, get_throttle
from intro_board.core.errors import (
    AuthenticationFailed,
    BoardError,
    NotFound,
    StoreUnavailable,
    SubmissionRejected,
    SubmissionThrottled,
    TransientStoreError,
    Unauthorized,
)
from intro_board.core.settings import settings
from intro_board.db.session import create_tables

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Intro Board API",
    description="Anonymous self-introduction board with a moderation queue",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")


def _error_status(exc: BoardError) -> int:
    if isinstance(exc, SubmissionRejected):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, SubmissionThrottled):
        return status.HTTP_429_TOO_MANY_REQUESTS
    if isinstance(exc, AuthenticationFailed):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, Unauthorized):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, TransientStoreError):
        return status.HTTP_504_GATEWAY_TIMEOUT
    if isinstance(exc, StoreUnavailable):
        if exc.permission_denied:
            return status.HTTP_403_FORBIDDEN
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(BoardError)
async def board_error_handler(request: Request, exc: BoardError) -> JSONResponse:
    """Turn service errors into distinct, user-facing responses."""
    body: dict[str, object] = {"detail": exc.message, "error": type(exc).__name__}
    headers: dict[str, str] = {}
    if isinstance(exc, SubmissionRejected):
        body["kind"] = exc.error.kind.value
        body["field"] = exc.error.field
    elif isinstance(exc, SubmissionThrottled):
        headers["Retry-After"] = str(exc.retry_after)
    elif isinstance(exc, StoreUnavailable):
        body["retryable"] = not exc.permission_denied
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=_error_status(exc), content=body, headers=headers)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.uses_default_secret and not settings.debug:
        logger.warning("SECRET_KEY is not set; moderator sessions use the default key")
    if not settings.admin_emails:
        logger.warning("ADMIN_EMAILS is empty; nobody can moderate posts")
    if settings.auto_create_tables:
        create_tables()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_post_store().drain()
    await get_throttle().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("intro_board.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
