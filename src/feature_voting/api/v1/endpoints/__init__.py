"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .features import router as features_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "auth_router",
    "features_router",
    "votes_router",
    "users_router",
]
