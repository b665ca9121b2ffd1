"""Vote endpoints for features."""

from fastapi import APIRouter

from feature_voting.api.v1.dependencies import CurrentUserDep, VotingServiceDep
from feature_voting.schemas import VoteResponse, VoteStatusResponse
from feature_voting.services import VoteResult

router = APIRouter(prefix="/features", tags=["votes"])


def _to_response(result: VoteResult) -> VoteResponse:
    return VoteResponse(
        feature_id=result.feature_id,
        vote_count=result.vote_count,
        has_voted=result.voted,
    )


@router.post("/{feature_id}/vote", response_model=VoteResponse)
def vote_for_feature(
    feature_id: int,
    current_user: CurrentUserDep,
    voting: VotingServiceDep,
) -> VoteResponse:
    """Cast the caller's vote for a feature."""
    return _to_response(voting.add_vote(current_user.id, feature_id))


@router.delete("/{feature_id}/vote", response_model=VoteResponse)
def remove_vote_from_feature(
    feature_id: int,
    current_user: CurrentUserDep,
    voting: VotingServiceDep,
) -> VoteResponse:
    """Withdraw the caller's vote from a feature."""
    return _to_response(voting.remove_vote(current_user.id, feature_id))


@router.post("/{feature_id}/vote/toggle", response_model=VoteResponse)
def toggle_vote(
    feature_id: int,
    current_user: CurrentUserDep,
    voting: VotingServiceDep,
) -> VoteResponse:
    """Flip the caller's vote on a feature."""
    return _to_response(voting.toggle_vote(current_user.id, feature_id))


@router.get("/{feature_id}/vote", response_model=VoteStatusResponse)
def get_my_vote(
    feature_id: int,
    current_user: CurrentUserDep,
    voting: VotingServiceDep,
) -> VoteStatusResponse:
    """Report whether the caller votes for a feature."""
    return VoteStatusResponse(
        feature_id=feature_id,
        has_voted=voting.has_voted(current_user.id, feature_id),
    )
