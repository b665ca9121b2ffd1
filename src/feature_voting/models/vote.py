"""Models capturing votes cast on features."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from feature_voting.db.session import Base
from feature_voting.db.time import utcnow


class Vote(Base):
    """One user's endorsement of one feature.

    Votes are never updated; unvoting deletes the row.
    """

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("user_id", "feature_id", name="uq_votes_user_feature"),
        Index("ix_votes_feature_id", "feature_id"),
        Index("ix_votes_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    feature_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
