"""Transactional maintenance of the denormalized ``features.vote_count``."""
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from feature_voting.models.feature import Feature
from feature_voting.models.vote import Vote

__all__ = ["VoteCounter"]


class VoteCounter:
    """Adjust and repair the per-feature vote tally.

    Adjustments are computed by the database (``vote_count = vote_count + 1``)
    so two writers can never both read N and both write N + 1.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _adjust(self, feature_id: int, delta: int) -> int | None:
        result = self.session.execute(
            update(Feature)
            .where(Feature.id == feature_id)
            .values(vote_count=Feature.vote_count + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.current(feature_id)

    def increment(self, feature_id: int) -> int | None:
        """Add one vote; return the new count, or None if the feature is gone."""
        return self._adjust(feature_id, 1)

    def decrement(self, feature_id: int) -> int | None:
        """Remove one vote; return the new count, or None if the feature is gone."""
        return self._adjust(feature_id, -1)

    def current(self, feature_id: int) -> int | None:
        """Return the stored count for a feature."""
        return self.session.scalar(select(Feature.vote_count).where(Feature.id == feature_id))

    def reconcile(self, feature_id: int) -> tuple[int, int] | None:
        """Overwrite the stored count with the ledger's true count.

        Returns:
            ``(stored_before, true_count)``, or None if the feature is gone.
        """
        stored = self.current(feature_id)
        if stored is None:
            return None
        true_count = select(func.count()).select_from(Vote).where(
            Vote.feature_id == feature_id
        ).scalar_subquery()
        self.session.execute(
            update(Feature)
            .where(Feature.id == feature_id)
            .values(vote_count=true_count)
            .execution_options(synchronize_session=False)
        )
        return stored, int(self.current(feature_id) or 0)
