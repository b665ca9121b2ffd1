"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from feature_voting.core.security import decode_access_token
from feature_voting.db.session import SessionLocal
from feature_voting.models import User
from feature_voting.services import FeatureService, TransactionRunner, VotingService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)


def get_transaction_runner() -> TransactionRunner:
    """Return a transaction runner bound to the application database."""
    return TransactionRunner(SessionLocal)


RunnerDep = Annotated[TransactionRunner, Depends(get_transaction_runner)]


def get_voting_service(runner: RunnerDep) -> VotingService:
    """Return the vote ledger/counter service."""
    return VotingService(runner)


def get_feature_service(runner: RunnerDep) -> FeatureService:
    """Return the feature lifecycle service."""
    return FeatureService(runner)


VotingServiceDep = Annotated[VotingService, Depends(get_voting_service)]
FeatureServiceDep = Annotated[FeatureService, Depends(get_feature_service)]


def _load_user(runner: TransactionRunner, user_id: int) -> User | None:
    with runner.read() as session:
        return session.get(User, user_id)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    runner: RunnerDep,
) -> User:
    """Get the current authenticated user from the bearer token.

    Raises:
        HTTPException: If the token is invalid or the user no longer exists.
    """
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    user = _load_user(runner, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def get_optional_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)],
) -> int | None:
    """Return the viewer's id when a valid token is supplied, else None."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


# Type aliases for user dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserIdDep = Annotated[int | None, Depends(get_optional_user_id)]
