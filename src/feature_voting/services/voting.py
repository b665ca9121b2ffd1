"""Vote ledger and counter coordination.

Every mutation pairs the ledger row change with the matching counter
adjustment inside one serializable transaction, so ``features.vote_count``
always equals the number of ``votes`` rows for that feature.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from feature_voting.models import User
from feature_voting.repositories import FeatureRepository, VoteCounter, VoteLedger
from feature_voting.services.errors import (
    AlreadyVotedError,
    FeatureNotFoundError,
    IntegrityViolationError,
    NotFoundError,
    UserNotFoundError,
    VoteNotFoundError,
)
from feature_voting.services.unit_of_work import FOREIGN_KEY, TransactionRunner

logger = logging.getLogger(__name__)

__all__ = ["ReconcileResult", "VoteRecord", "VoteResult", "VotingService"]


@dataclass(frozen=True)
class VoteResult:
    """Outcome of a vote mutation."""

    feature_id: int
    vote_count: int
    voted: bool


@dataclass(frozen=True)
class VoteRecord:
    """Snapshot of one ledger row."""

    id: int
    user_id: int
    feature_id: int
    created_at: datetime


@dataclass(frozen=True)
class ReconcileResult:
    """Stored versus true count for one feature after a repair pass."""

    feature_id: int
    stored_count: int
    actual_count: int

    @property
    def drifted(self) -> bool:
        return self.stored_count != self.actual_count


def _require_feature(session: Session, feature_id: int) -> None:
    if not FeatureRepository(session).exists(feature_id):
        raise FeatureNotFoundError(feature_id)


def _counted(count: int | None, feature_id: int) -> int:
    # The feature vanished between the existence check and the counter update.
    if count is None:
        raise FeatureNotFoundError(feature_id)
    return count


class VotingService:
    """Cast, withdraw and inspect votes."""

    def __init__(self, runner: TransactionRunner) -> None:
        self.runner = runner

    def _missing_reference(self, user_id: int, feature_id: int) -> NotFoundError | None:
        """Work out which side of a rejected vote row no longer exists."""
        with self.runner.read() as session:
            if not FeatureRepository(session).exists(feature_id):
                return FeatureNotFoundError(feature_id)
            if session.get(User, user_id) is None:
                return UserNotFoundError(user_id)
        return None

    def _run_vote(
        self, work: Callable[[Session], VoteResult], *, operation: str, user_id: int, feature_id: int
    ) -> VoteResult:
        try:
            return self.runner.run(work, operation=operation)
        except IntegrityViolationError as exc:
            if exc.kind != FOREIGN_KEY:
                raise
            missing = self._missing_reference(user_id, feature_id)
            if missing is None:
                raise
            raise missing from exc

    def add_vote(self, user_id: int, feature_id: int) -> VoteResult:
        """Record a vote and increment the feature's counter.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
            AlreadyVotedError: If the user already voted for the feature.
            UserNotFoundError: If no user has id ``user_id``.
        """

        def _add(session: Session) -> VoteResult:
            _require_feature(session, feature_id)
            ledger = VoteLedger(session)
            if ledger.has_voted(user_id, feature_id):
                raise AlreadyVotedError(user_id, feature_id)
            ledger.add(user_id, feature_id)
            count = _counted(VoteCounter(session).increment(feature_id), feature_id)
            return VoteResult(feature_id=feature_id, vote_count=count, voted=True)

        try:
            result = self._run_vote(
                _add, operation="add_vote", user_id=user_id, feature_id=feature_id
            )
        except AlreadyVotedError:
            logger.info(
                "Duplicate vote attempt",
                extra={"user_id": user_id, "feature_id": feature_id},
            )
            raise
        logger.info(
            "Vote added for feature %s by user %s",
            feature_id,
            user_id,
            extra={"user_id": user_id, "feature_id": feature_id, "vote_count": result.vote_count},
        )
        return result

    def remove_vote(self, user_id: int, feature_id: int) -> VoteResult:
        """Withdraw a vote and decrement the feature's counter.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
            VoteNotFoundError: If the user has not voted for the feature.
        """

        def _remove(session: Session) -> VoteResult:
            _require_feature(session, feature_id)
            if not VoteLedger(session).remove(user_id, feature_id):
                raise VoteNotFoundError(user_id, feature_id)
            count = _counted(VoteCounter(session).decrement(feature_id), feature_id)
            return VoteResult(feature_id=feature_id, vote_count=count, voted=False)

        result = self.runner.run(_remove, operation="remove_vote")
        logger.info(
            "Vote removed for feature %s by user %s",
            feature_id,
            user_id,
            extra={"user_id": user_id, "feature_id": feature_id, "vote_count": result.vote_count},
        )
        return result

    def toggle_vote(self, user_id: int, feature_id: int) -> VoteResult:
        """Flip the user's vote on a feature and return the new state.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
            UserNotFoundError: If no user has id ``user_id``.
        """

        def _toggle(session: Session) -> VoteResult:
            _require_feature(session, feature_id)
            ledger = VoteLedger(session)
            counter = VoteCounter(session)
            if ledger.remove(user_id, feature_id):
                count = _counted(counter.decrement(feature_id), feature_id)
                return VoteResult(feature_id=feature_id, vote_count=count, voted=False)
            ledger.add(user_id, feature_id)
            count = _counted(counter.increment(feature_id), feature_id)
            return VoteResult(feature_id=feature_id, vote_count=count, voted=True)

        result = self._run_vote(
            _toggle, operation="toggle_vote", user_id=user_id, feature_id=feature_id
        )
        logger.info(
            "Vote toggled for feature %s by user %s (voted=%s)",
            feature_id,
            user_id,
            result.voted,
            extra={"user_id": user_id, "feature_id": feature_id, "vote_count": result.vote_count},
        )
        return result

    def has_voted(self, user_id: int, feature_id: int) -> bool:
        """Return True if the user currently has a vote on the feature."""
        with self.runner.read() as session:
            return VoteLedger(session).has_voted(user_id, feature_id)

    def list_votes_by_user(self, user_id: int) -> list[VoteRecord]:
        """Return the user's votes, most recent first."""
        with self.runner.read() as session:
            return [
                VoteRecord(
                    id=vote.id,
                    user_id=vote.user_id,
                    feature_id=vote.feature_id,
                    created_at=vote.created_at,
                )
                for vote in VoteLedger(session).list_by_user(user_id)
            ]

    def reconcile(self, feature_id: int) -> ReconcileResult:
        """Reset a feature's stored count to the ledger's true count.

        This is a repair tool for historical drift, not part of the vote path.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
        """

        def _reconcile(session: Session) -> ReconcileResult:
            outcome = VoteCounter(session).reconcile(feature_id)
            if outcome is None:
                raise FeatureNotFoundError(feature_id)
            stored, actual = outcome
            return ReconcileResult(feature_id=feature_id, stored_count=stored, actual_count=actual)

        result = self.runner.run(_reconcile, operation="reconcile")
        if result.drifted:
            logger.warning(
                "Repaired vote count for feature %s: stored %s, actual %s",
                feature_id,
                result.stored_count,
                result.actual_count,
                extra={"feature_id": feature_id, "vote_count": result.actual_count},
            )
        return result

    def reconcile_all(self) -> list[ReconcileResult]:
        """Reconcile every feature, one transaction each.

        Features deleted while the pass runs are skipped.
        """
        with self.runner.read() as session:
            feature_ids = list(FeatureRepository(session).list_ids())

        results: list[ReconcileResult] = []
        for feature_id in feature_ids:
            try:
                results.append(self.reconcile(feature_id))
            except FeatureNotFoundError:
                continue
        return results
