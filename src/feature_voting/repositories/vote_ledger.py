"""The vote ledger: the authoritative record of who voted for what."""
from __future__ import annotations

from sqlalchemy import delete, exists, func, select
from sqlalchemy.orm import Session

from feature_voting.db.time import utcnow
from feature_voting.models.vote import Vote

__all__ = ["VoteLedger"]


class VoteLedger:
    """Ledger queries and row mutations for a single session.

    The ledger never touches ``features.vote_count``; callers pair every
    :meth:`add` with ``VoteCounter.increment`` and every successful
    :meth:`remove` with ``VoteCounter.decrement`` inside one transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def has_voted(self, user_id: int, feature_id: int) -> bool:
        """Return True if the (user, feature) vote row exists."""
        stmt = select(exists().where(Vote.user_id == user_id, Vote.feature_id == feature_id))
        return bool(self.session.scalar(stmt))

    def voted_feature_ids(self, user_id: int, feature_ids: list[int]) -> set[int]:
        """Return the subset of ``feature_ids`` the user has voted for."""
        if not feature_ids:
            return set()
        stmt = select(Vote.feature_id).where(
            Vote.user_id == user_id,
            Vote.feature_id.in_(feature_ids),
        )
        return set(self.session.scalars(stmt))

    def add(self, user_id: int, feature_id: int) -> Vote:
        """Insert a vote row.

        Raises:
            sqlalchemy.exc.IntegrityError: If the pair already exists or the
                feature/user does not, detected at flush time.
        """
        vote = Vote(user_id=user_id, feature_id=feature_id, created_at=utcnow())
        self.session.add(vote)
        self.session.flush()
        return vote

    def remove(self, user_id: int, feature_id: int) -> bool:
        """Delete the vote row; return False if there was nothing to delete."""
        result = self.session.execute(
            delete(Vote)
            .where(Vote.user_id == user_id, Vote.feature_id == feature_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    def remove_all_for_feature(self, feature_id: int) -> int:
        """Delete every vote for a feature and return how many went."""
        result = self.session.execute(
            delete(Vote)
            .where(Vote.feature_id == feature_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    def count_for_feature(self, feature_id: int) -> int:
        """Return the true number of votes for a feature."""
        stmt = select(func.count()).select_from(Vote).where(Vote.feature_id == feature_id)
        return int(self.session.scalar(stmt) or 0)

    def list_by_user(self, user_id: int) -> list[Vote]:
        """Return all votes cast by a user, most recent first."""
        result = self.session.execute(
            select(Vote)
            .where(Vote.user_id == user_id)
            .order_by(Vote.created_at.desc(), Vote.id.desc())
        )
        return list(result.scalars())
