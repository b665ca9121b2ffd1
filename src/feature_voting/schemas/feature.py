"""Feature-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class FeatureCreate(BaseModel):
    """Schema for proposing a new feature."""

    title: str = Field(..., min_length=5, max_length=255)
    description: str = Field(..., min_length=10)


class FeatureUpdate(BaseModel):
    """Partial update of a feature's text."""

    title: str | None = Field(None, min_length=5, max_length=255)
    description: str | None = Field(None, min_length=10)


class FeatureResponse(BaseModel):
    """Schema for feature information returned by the API."""

    id: int
    title: str
    description: str
    created_by: int
    created_by_username: str | None = None
    vote_count: int
    created_at: datetime
    updated_at: datetime
    has_user_voted: bool | None = None

    model_config = ConfigDict(from_attributes=True)


class FeatureListResponse(BaseModel):
    """Paginated feature list, most voted first."""

    features: list[FeatureResponse]
    total: int
    page: int
    per_page: int
