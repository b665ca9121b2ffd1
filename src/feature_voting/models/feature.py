"""SQLAlchemy model for proposed features."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from feature_voting.db.session import Base
from feature_voting.db.time import utcnow


class Feature(Base):
    """A proposed feature owned by its creator.

    ``vote_count`` mirrors the number of rows in ``votes`` for this feature.
    It is only ever changed by the vote counter inside the same transaction
    as the ledger row it accounts for.
    """

    __tablename__ = "features"
    __table_args__ = (
        CheckConstraint("vote_count >= 0", name="ck_features_vote_count_non_negative"),
        Index("ix_features_created_by", "created_by"),
        Index("ix_features_vote_count", "vote_count"),
        Index("ix_features_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
