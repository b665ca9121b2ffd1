"""Provision a user account from the command line."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from feature_voting.core.security import hash_password
from feature_voting.db.session import SessionLocal
from feature_voting.models import User
from feature_voting.services import TransactionRunner

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def validate_user_input(username: str, email: str, password: str) -> tuple[str, str]:
    """Return the normalized ``(username, email)`` or raise ValueError."""
    if not username:
        raise ValueError("username is required")
    if not email:
        raise ValueError("email is required")
    if not password:
        raise ValueError("password is required")

    username = username.strip()
    email = email.strip().lower()

    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValueError(
            f"username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
        )
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    if "@" not in email:
        raise ValueError("invalid email format")
    return username, email


def create_user(runner: TransactionRunner, username: str, email: str, password: str) -> int:
    """Insert a new user and return its id.

    Raises:
        ValueError: If the input is invalid or the username/email is taken.
    """
    username, email = validate_user_input(username, email, password)
    password_hash = hash_password(password)

    def _create(session: Session) -> int:
        if session.scalar(select(User.id).where(User.email == email)) is not None:
            raise ValueError(f"user with email '{email}' already exists")
        if session.scalar(select(User.id).where(User.username == username)) is not None:
            raise ValueError(f"user with username '{username}' already exists")
        user = User(username=username, email=email, password_hash=password_hash)
        session.add(user)
        session.flush()
        return user.id

    return runner.run(_create, operation="create_user")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create a feature voting user")
    parser.add_argument("--name", required=True, help="Username (3-50 characters)")
    parser.add_argument("--email", required=True, help="Email address used to log in")
    parser.add_argument("--password", required=True, help="Password (at least 6 characters)")
    args = parser.parse_args(argv)

    try:
        user_id = create_user(TransactionRunner(SessionLocal), args.name, args.email, args.password)
    except ValueError as exc:
        print(f"[create_user] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
    print(f"[create_user] created user {args.name.strip()} with id {user_id}")


if __name__ == "__main__":
    main()
