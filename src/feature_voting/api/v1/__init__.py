"""Version 1 API endpoints."""

from .endpoints import auth_router, features_router, users_router, votes_router

__all__ = [
    "auth_router",
    "features_router",
    "votes_router",
    "users_router",
]
