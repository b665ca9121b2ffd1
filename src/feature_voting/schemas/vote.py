"""Vote-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class VoteResponse(BaseModel):
    """Result of casting, withdrawing or toggling a vote."""

    feature_id: int
    vote_count: int
    has_voted: bool


class VoteStatusResponse(BaseModel):
    """Whether the caller currently votes for a feature."""

    feature_id: int
    has_voted: bool


class VoteOut(BaseModel):
    """One vote cast by the caller."""

    id: int
    feature_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
