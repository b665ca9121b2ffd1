"""Authentication endpoints."""

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from feature_voting.api.v1.dependencies import CurrentUserDep, RunnerDep
from feature_voting.core.security import create_access_token, verify_password
from feature_voting.models import User
from feature_voting.schemas import LoginRequest, TokenResponse, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, runner: RunnerDep) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    email = payload.email.strip().lower()
    with runner.read() as session:
        user = session.scalar(select(User).where(User.email == email))
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/me", response_model=UserOut)
def read_me(current_user: CurrentUserDep) -> User:
    """Return the authenticated user."""
    return current_user
