"""Tests for vote ledger and counter coordination."""

import pytest
from sqlalchemy import update

from feature_voting.models import Feature
from feature_voting.repositories import VoteLedger
from feature_voting.services import (
    AlreadyVotedError,
    FeatureNotFoundError,
    IntegrityViolationError,
    UserNotFoundError,
    VoteNotFoundError,
)
from tests.conftest import ledger_vote_count, stored_vote_count


def test_vote_unvote_revote_scenario(voting, session_factory, feature, alice, bob) -> None:
    """Counts track every add and remove, and a removed vote can be recast."""
    assert feature.vote_count == 0

    result = voting.add_vote(alice.id, feature.id)
    assert (result.vote_count, result.voted) == (1, True)
    assert voting.has_voted(alice.id, feature.id) is True

    assert voting.add_vote(bob.id, feature.id).vote_count == 2

    result = voting.remove_vote(alice.id, feature.id)
    assert (result.vote_count, result.voted) == (1, False)
    assert voting.has_voted(alice.id, feature.id) is False

    assert voting.add_vote(alice.id, feature.id).vote_count == 2
    assert stored_vote_count(session_factory, feature.id) == 2
    assert ledger_vote_count(session_factory, feature.id) == 2


def test_second_vote_is_rejected(voting, session_factory, feature, alice) -> None:
    voting.add_vote(alice.id, feature.id)

    with pytest.raises(AlreadyVotedError):
        voting.add_vote(alice.id, feature.id)

    assert stored_vote_count(session_factory, feature.id) == 1
    assert ledger_vote_count(session_factory, feature.id) == 1


def test_vote_for_missing_feature(voting, alice) -> None:
    with pytest.raises(FeatureNotFoundError):
        voting.add_vote(alice.id, 99999)


def test_remove_vote_errors(voting, feature, alice) -> None:
    with pytest.raises(VoteNotFoundError):
        voting.remove_vote(alice.id, feature.id)
    with pytest.raises(FeatureNotFoundError):
        voting.remove_vote(alice.id, 99999)


def test_failed_remove_leaves_count_untouched(voting, session_factory, feature, alice, bob) -> None:
    voting.add_vote(bob.id, feature.id)
    with pytest.raises(VoteNotFoundError):
        voting.remove_vote(alice.id, feature.id)
    assert stored_vote_count(session_factory, feature.id) == 1


def test_toggle_twice_restores_original_state(voting, feature, alice, bob) -> None:
    voting.add_vote(bob.id, feature.id)

    first = voting.toggle_vote(alice.id, feature.id)
    assert (first.voted, first.vote_count) == (True, 2)

    second = voting.toggle_vote(alice.id, feature.id)
    assert (second.voted, second.vote_count) == (False, 1)
    assert voting.has_voted(alice.id, feature.id) is False


def test_toggle_missing_feature(voting, alice) -> None:
    with pytest.raises(FeatureNotFoundError):
        voting.toggle_vote(alice.id, 99999)


def test_invariant_holds_over_mixed_sequence(
    voting, session_factory, feature, user_factory
) -> None:
    users = [user_factory() for _ in range(6)]
    for user in users:
        voting.add_vote(user.id, feature.id)
    for user in users[::2]:
        voting.remove_vote(user.id, feature.id)
    for user in users[:3]:
        voting.toggle_vote(user.id, feature.id)

    assert stored_vote_count(session_factory, feature.id) == ledger_vote_count(
        session_factory, feature.id
    )


def test_deleting_feature_cascades_votes(
    voting, features, session_factory, owner, feature, alice, bob
) -> None:
    voting.add_vote(alice.id, feature.id)
    voting.add_vote(bob.id, feature.id)

    features.delete_feature(owner.id, feature.id)

    assert ledger_vote_count(session_factory, feature.id) == 0
    assert voting.has_voted(alice.id, feature.id) is False
    assert voting.has_voted(bob.id, feature.id) is False
    with pytest.raises(FeatureNotFoundError):
        features.get_feature(feature.id, viewer_id=alice.id)
    with pytest.raises(FeatureNotFoundError):
        voting.add_vote(alice.id, feature.id)


def test_list_votes_by_user(voting, features, owner, alice) -> None:
    first = features.create_feature(owner.id, "First feature", "Description of the first")
    second = features.create_feature(owner.id, "Second feature", "Description of the second")
    voting.add_vote(alice.id, first.id)
    voting.add_vote(alice.id, second.id)

    votes = voting.list_votes_by_user(alice.id)
    assert [vote.feature_id for vote in votes] == [second.id, first.id]
    assert all(vote.user_id == alice.id for vote in votes)

    voting.remove_vote(alice.id, second.id)
    assert [vote.feature_id for vote in voting.list_votes_by_user(alice.id)] == [first.id]


def test_list_votes_for_user_without_votes(voting, alice) -> None:
    assert voting.list_votes_by_user(alice.id) == []


def test_reconcile_reports_and_repairs_drift(voting, session_factory, feature, alice) -> None:
    voting.add_vote(alice.id, feature.id)
    with session_factory() as session, session.begin():
        session.execute(update(Feature).where(Feature.id == feature.id).values(vote_count=5))

    result = voting.reconcile(feature.id)
    assert result.drifted
    assert (result.stored_count, result.actual_count) == (5, 1)
    assert stored_vote_count(session_factory, feature.id) == 1

    assert voting.reconcile(feature.id).drifted is False


def test_reconcile_missing_feature(voting) -> None:
    with pytest.raises(FeatureNotFoundError):
        voting.reconcile(99999)


def test_reconcile_all(voting, features, session_factory, owner, alice) -> None:
    clean = features.create_feature(owner.id, "Clean feature", "Count already correct")
    broken = features.create_feature(owner.id, "Broken feature", "Count drifted upwards")
    voting.add_vote(alice.id, clean.id)
    with session_factory() as session, session.begin():
        session.execute(update(Feature).where(Feature.id == broken.id).values(vote_count=3))

    results = {result.feature_id: result for result in voting.reconcile_all()}
    assert set(results) == {clean.id, broken.id}
    assert results[clean.id].drifted is False
    assert results[broken.id].drifted is True
    assert stored_vote_count(session_factory, broken.id) == 0


def test_vote_from_unknown_user_fails_once(
    monkeypatch, voting, session_factory, feature
) -> None:
    """A missing voter is reported straight away instead of being retried."""
    inserts: list[int] = []
    original_add = VoteLedger.add

    def _counting_add(self, user_id, feature_id):
        inserts.append(user_id)
        return original_add(self, user_id, feature_id)

    monkeypatch.setattr(VoteLedger, "add", _counting_add)

    with pytest.raises(UserNotFoundError) as excinfo:
        voting.add_vote(424242, feature.id)

    assert excinfo.value.user_id == 424242
    assert inserts == [424242]
    assert stored_vote_count(session_factory, feature.id) == 0
    assert ledger_vote_count(session_factory, feature.id) == 0


def test_toggle_from_unknown_user(voting, session_factory, feature) -> None:
    with pytest.raises(UserNotFoundError):
        voting.toggle_vote(424242, feature.id)
    assert stored_vote_count(session_factory, feature.id) == 0


def test_remove_vote_with_drifted_count_is_rejected(
    voting, session_factory, feature, alice
) -> None:
    """A decrement below zero is refused and leaves both tables untouched."""
    voting.add_vote(alice.id, feature.id)
    with session_factory() as session, session.begin():
        session.execute(update(Feature).where(Feature.id == feature.id).values(vote_count=0))

    with pytest.raises(IntegrityViolationError) as excinfo:
        voting.remove_vote(alice.id, feature.id)

    assert excinfo.value.kind == "check"
    assert stored_vote_count(session_factory, feature.id) == 0
    assert ledger_vote_count(session_factory, feature.id) == 1

    voting.reconcile(feature.id)
    assert voting.remove_vote(alice.id, feature.id).vote_count == 0
