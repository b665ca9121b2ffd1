"""Pydantic schemas for the HTTP API."""

from .auth import LoginRequest, TokenResponse, UserOut
from .feature import FeatureCreate, FeatureListResponse, FeatureResponse, FeatureUpdate
from .vote import VoteOut, VoteResponse, VoteStatusResponse

__all__ = [
    "FeatureCreate",
    "FeatureListResponse",
    "FeatureResponse",
    "FeatureUpdate",
    "LoginRequest",
    "TokenResponse",
    "UserOut",
    "VoteOut",
    "VoteResponse",
    "VoteStatusResponse",
]
