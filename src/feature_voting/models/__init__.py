"""SQLAlchemy models for the feature voting service."""

from .feature import Feature
from .user import User
from .vote import Vote

__all__ = [
    "Feature",
    "User",
    "Vote",
]
