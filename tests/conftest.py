# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from itertools import count
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from feature_voting.api.v1.dependencies import get_transaction_runner
from feature_voting.core.security import create_access_token
from feature_voting.db.session import build_engine, create_tables, drop_tables
from feature_voting.main import app as fastapi_app
from feature_voting.models import Feature, User, Vote
from feature_voting.services import (
    FeatureService,
    FeatureView,
    TransactionRunner,
    VotingService,
)

_USER_COUNTER = count(1)

# Not a real bcrypt hash; login tests hash their own password.
UNUSABLE_PASSWORD_HASH = "!"


@pytest.fixture()
def engine(tmp_path: Path) -> Iterator[Engine]:
    """File-backed SQLite so worker threads share one database."""
    engine = build_engine(
        f"sqlite:///{tmp_path / 'feature_voting.db'}",
        pool_size=20,
        max_overflow=40,
    )
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def runner(session_factory: sessionmaker[Session]) -> TransactionRunner:
    return TransactionRunner(session_factory, max_attempts=10, backoff_seconds=0.005)


@pytest.fixture()
def voting(runner: TransactionRunner) -> VotingService:
    return VotingService(runner)


@pytest.fixture()
def features(runner: TransactionRunner) -> FeatureService:
    return FeatureService(runner)


def make_user(
    session_factory: sessionmaker[Session],
    username: str | None = None,
    password_hash: str = UNUSABLE_PASSWORD_HASH,
) -> User:
    """Persist and return a user with a unique name and email."""
    username = username or f"user{next(_USER_COUNTER)}"
    with session_factory() as session, session.begin():
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=password_hash,
        )
        session.add(user)
    return user


def stored_vote_count(session_factory: sessionmaker[Session], feature_id: int) -> int | None:
    """Read ``features.vote_count`` straight from the table."""
    with session_factory() as session:
        return session.scalar(select(Feature.vote_count).where(Feature.id == feature_id))


def ledger_vote_count(session_factory: sessionmaker[Session], feature_id: int) -> int:
    """Count ``votes`` rows for a feature straight from the table."""
    with session_factory() as session:
        return len(session.scalars(select(Vote.id).where(Vote.feature_id == feature_id)).all())


@pytest.fixture()
def user_factory(session_factory: sessionmaker[Session]) -> Callable[..., User]:
    def _factory(username: str | None = None) -> User:
        return make_user(session_factory, username)

    return _factory


@pytest.fixture()
def owner(session_factory: sessionmaker[Session]) -> User:
    """The user who proposes features in most tests."""
    return make_user(session_factory, "owner")


@pytest.fixture()
def alice(session_factory: sessionmaker[Session]) -> User:
    return make_user(session_factory, "alice")


@pytest.fixture()
def bob(session_factory: sessionmaker[Session]) -> User:
    return make_user(session_factory, "bob")


@pytest.fixture()
def feature(features: FeatureService, owner: User) -> FeatureView:
    """A freshly proposed feature with no votes."""
    return features.create_feature(owner.id, "Dark mode", "Support a dark colour scheme")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, runner: TransactionRunner) -> Iterator[TestClient]:
    app.dependency_overrides[get_transaction_runner] = lambda: runner
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_transaction_runner, None)


def auth_headers(user: User) -> dict[str, str]:
    """Return authorization headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def owner_headers(owner: User) -> dict[str, str]:
    return auth_headers(owner)


@pytest.fixture()
def alice_headers(alice: User) -> dict[str, str]:
    return auth_headers(alice)
