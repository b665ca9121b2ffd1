"""Endpoints scoped to the authenticated user's own activity."""

from fastapi import APIRouter

from feature_voting.api.v1.dependencies import (
    CurrentUserDep,
    FeatureServiceDep,
    VotingServiceDep,
)
from feature_voting.schemas import FeatureResponse, VoteOut
from feature_voting.services import FeatureView, VoteRecord

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/features", response_model=list[FeatureResponse])
def list_my_features(
    current_user: CurrentUserDep,
    features: FeatureServiceDep,
) -> list[FeatureView]:
    """Return the features the caller proposed, newest first."""
    return features.list_features_by_creator(current_user.id)


@router.get("/me/votes", response_model=list[VoteOut])
def list_my_votes(
    current_user: CurrentUserDep,
    voting: VotingServiceDep,
) -> list[VoteRecord]:
    """Return the caller's votes, most recent first."""
    return voting.list_votes_by_user(current_user.id)
