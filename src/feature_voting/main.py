"""Main entry point for the feature voting application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from feature_voting.api.v1 import auth_router, features_router, users_router, votes_router
from feature_voting.core.settings import settings
from feature_voting.services.errors import (
    AlreadyVotedError,
    ConflictError,
    FeatureNotFoundError,
    ForbiddenError,
    NotFoundError,
    StorageUnavailableError,
    UserNotFoundError,
    ValidationFailedError,
    VoteNotFoundError,
    VotingError,
)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Propose features and vote on the ones you want most",
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
app.include_router(auth_router, prefix="/api/v1")
app.include_router(features_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


def _error_response(exc: VotingError) -> tuple[int, str]:
    """Map a core error onto an HTTP status and a user-facing message."""
    if isinstance(exc, FeatureNotFoundError):
        return status.HTTP_404_NOT_FOUND, "feature not found"
    if isinstance(exc, VoteNotFoundError):
        return status.HTTP_404_NOT_FOUND, "vote not found"
    if isinstance(exc, UserNotFoundError):
        return status.HTTP_404_NOT_FOUND, "user not found"
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, "not found"
    if isinstance(exc, AlreadyVotedError):
        return status.HTTP_409_CONFLICT, "already voted"
    if isinstance(exc, ConflictError):
        return status.HTTP_409_CONFLICT, "conflicting update, please retry"
    if isinstance(exc, ForbiddenError):
        return status.HTTP_403_FORBIDDEN, "not the owner"
    if isinstance(exc, ValidationFailedError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
    if isinstance(exc, StorageUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "storage unavailable"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error"


@app.exception_handler(VotingError)
async def voting_error_handler(request: Request, exc: VotingError) -> JSONResponse:
    status_code, detail = _error_response(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


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
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("feature_voting.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
