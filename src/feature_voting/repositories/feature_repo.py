"""Data access helpers for working with features."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import Select, delete, exists, func, select, update
from sqlalchemy.orm import Session

from feature_voting.db.time import utcnow
from feature_voting.models.feature import Feature
from feature_voting.models.user import User

__all__ = ["FeatureRepository"]


class FeatureRepository:
    """Thin wrapper around database access for feature entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, feature_id: int) -> Feature | None:
        """Return a feature by identifier."""
        return self.session.get(Feature, feature_id)

    def exists(self, feature_id: int) -> bool:
        """Return True if the feature is present in the current transaction."""
        return bool(self.session.scalar(select(exists().where(Feature.id == feature_id))))

    def count(self) -> int:
        """Return the total number of features."""
        return int(self.session.scalar(select(func.count()).select_from(Feature)) or 0)

    @staticmethod
    def _with_creator() -> Select[tuple[Feature, str | None]]:
        return select(Feature, User.username).outerjoin(User, User.id == Feature.created_by)

    def get_with_creator(self, feature_id: int) -> tuple[Feature, str | None] | None:
        """Return a feature and its creator's username."""
        row = self.session.execute(self._with_creator().where(Feature.id == feature_id)).first()
        if row is None:
            return None
        return row[0], row[1]

    def list_page(self, *, limit: int, offset: int) -> list[tuple[Feature, str | None]]:
        """Return features ranked by popularity, newest first among ties."""
        result = self.session.execute(
            self._with_creator()
            .order_by(Feature.vote_count.desc(), Feature.created_at.desc(), Feature.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [(feature, username) for feature, username in result]

    def list_by_creator(self, user_id: int) -> list[tuple[Feature, str | None]]:
        """Return features created by ``user_id``, newest first."""
        result = self.session.execute(
            self._with_creator()
            .where(Feature.created_by == user_id)
            .order_by(Feature.created_at.desc(), Feature.id.desc())
        )
        return [(feature, username) for feature, username in result]

    def list_ids(self) -> Sequence[int]:
        """Return every feature id in ascending order."""
        return self.session.scalars(select(Feature.id).order_by(Feature.id)).all()

    def create(self, *, title: str, description: str, created_by: int) -> Feature:
        """Insert a new feature with a zero vote count and return it."""
        now = utcnow()
        feature = Feature(
            title=title,
            description=description,
            created_by=created_by,
            vote_count=0,
            created_at=now,
            updated_at=now,
        )
        self.session.add(feature)
        self.session.flush()
        return feature

    def apply_update(
        self,
        feature: Feature,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> Feature:
        """Apply a partial update to a loaded feature and flush it."""
        if title is not None:
            feature.title = title
        if description is not None:
            feature.description = description
        feature.updated_at = utcnow()
        self.session.flush()
        return feature

    def delete(self, feature_id: int) -> bool:
        """Delete the feature row; return False if it was already gone."""
        result = self.session.execute(
            delete(Feature)
            .where(Feature.id == feature_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
