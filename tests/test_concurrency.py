"""Concurrent vote traffic against a shared database."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from feature_voting.services import (
    AlreadyVotedError,
    FeatureNotFoundError,
    TransactionRunner,
    VotingService,
)
from feature_voting.services import voting as voting_module
from tests.conftest import ledger_vote_count, stored_vote_count

WORKERS = 16


@pytest.fixture()
def patient_voting(session_factory) -> VotingService:
    """A voting service that tolerates heavy lock contention."""
    return VotingService(TransactionRunner(session_factory, max_attempts=50, backoff_seconds=0.01))


def test_concurrent_votes_from_distinct_users(
    patient_voting, session_factory, feature, user_factory
) -> None:
    users = [user_factory() for _ in range(50)]

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        results = list(pool.map(lambda user: patient_voting.add_vote(user.id, feature.id), users))

    assert all(result.voted for result in results)
    assert sorted(result.vote_count for result in results) == list(range(1, 51))
    assert stored_vote_count(session_factory, feature.id) == 50
    assert ledger_vote_count(session_factory, feature.id) == 50


def test_concurrent_duplicate_votes_count_once(
    patient_voting, session_factory, feature, alice
) -> None:
    def _vote(_: int) -> bool:
        try:
            patient_voting.add_vote(alice.id, feature.id)
        except AlreadyVotedError:
            return False
        return True

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        outcomes = list(pool.map(_vote, range(20)))

    assert outcomes.count(True) == 1
    assert stored_vote_count(session_factory, feature.id) == 1
    assert ledger_vote_count(session_factory, feature.id) == 1


def test_concurrent_mixed_traffic_keeps_counts_exact(
    patient_voting, features, session_factory, owner, user_factory
) -> None:
    first = features.create_feature(owner.id, "First feature", "Description of the first")
    second = features.create_feature(owner.id, "Second feature", "Description of the second")
    users = [user_factory() for _ in range(20)]
    for user in users[:10]:
        patient_voting.add_vote(user.id, first.id)

    def _act(index: int) -> None:
        user = users[index]
        if index < 10:
            patient_voting.remove_vote(user.id, first.id)
        patient_voting.toggle_vote(user.id, second.id)
        patient_voting.toggle_vote(user.id, first.id)

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        list(pool.map(_act, range(len(users))))

    for feature_id in (first.id, second.id):
        assert stored_vote_count(session_factory, feature_id) == 20
        assert ledger_vote_count(session_factory, feature_id) == 20


@pytest.mark.parametrize("operation", ["add_vote", "toggle_vote"])
def test_vote_racing_feature_deletion_leaves_no_orphan(
    monkeypatch, voting, features, session_factory, owner, alice, feature, operation
) -> None:
    """The feature disappears after the existence check but before the insert."""
    original_require = voting_module._require_feature

    def _check_then_delete(session, feature_id):
        original_require(session, feature_id)
        features.delete_feature(owner.id, feature_id)

    monkeypatch.setattr(voting_module, "_require_feature", _check_then_delete)

    with pytest.raises(FeatureNotFoundError):
        getattr(voting, operation)(alice.id, feature.id)

    assert ledger_vote_count(session_factory, feature.id) == 0
    assert stored_vote_count(session_factory, feature.id) is None
    assert voting.list_votes_by_user(alice.id) == []


def test_concurrent_votes_and_deletion(
    patient_voting, features, session_factory, owner, feature, user_factory
) -> None:
    """Votes landing around a deletion either count or fail with FeatureNotFound."""
    users = [user_factory() for _ in range(20)]

    def _vote(user) -> str:
        try:
            patient_voting.add_vote(user.id, feature.id)
        except FeatureNotFoundError:
            return "gone"
        return "voted"

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        futures = [pool.submit(_vote, user) for user in users[:10]]
        futures.append(pool.submit(features.delete_feature, owner.id, feature.id))
        futures.extend(pool.submit(_vote, user) for user in users[10:])
        outcomes = [future.result() for future in futures]

    assert set(outcomes) <= {"voted", "gone", None}
    assert ledger_vote_count(session_factory, feature.id) == 0
    assert stored_vote_count(session_factory, feature.id) is None
