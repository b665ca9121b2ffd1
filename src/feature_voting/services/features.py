"""Feature lifecycle: create, read, update and delete with vote cascade."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from feature_voting.core.settings import settings
from feature_voting.models import Feature, User
from feature_voting.repositories import FeatureRepository, VoteLedger
from feature_voting.services.errors import (
    FeatureNotFoundError,
    IntegrityViolationError,
    NotOwnerError,
    ValidationFailedError,
)
from feature_voting.services.unit_of_work import FOREIGN_KEY, TransactionRunner

logger = logging.getLogger(__name__)

__all__ = ["FeaturePage", "FeatureService", "FeatureView"]

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 255
DESCRIPTION_MIN_LENGTH = 10


@dataclass(frozen=True)
class FeatureView:
    """Read model of a feature as seen by an optional viewer."""

    id: int
    title: str
    description: str
    created_by: int
    created_by_username: str | None
    vote_count: int
    created_at: datetime
    updated_at: datetime
    has_user_voted: bool | None = None


@dataclass(frozen=True)
class FeaturePage:
    """One page of the popularity-ranked feature list."""

    items: list[FeatureView]
    total: int
    page: int
    per_page: int


def _to_view(
    feature: Feature,
    username: str | None,
    has_user_voted: bool | None = None,
) -> FeatureView:
    return FeatureView(
        id=feature.id,
        title=feature.title,
        description=feature.description,
        created_by=feature.created_by,
        created_by_username=username,
        vote_count=feature.vote_count,
        created_at=feature.created_at,
        updated_at=feature.updated_at,
        has_user_voted=has_user_voted,
    )


def _clean_title(title: str) -> str:
    title = title.strip()
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        raise ValidationFailedError(
            f"title must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} characters"
        )
    return title


def _clean_description(description: str) -> str:
    description = description.strip()
    if len(description) < DESCRIPTION_MIN_LENGTH:
        raise ValidationFailedError(
            f"description must be at least {DESCRIPTION_MIN_LENGTH} characters"
        )
    return description


def normalize_pagination(page: int | None, per_page: int | None) -> tuple[int, int]:
    """Clamp pagination input, falling back to defaults for bad values."""
    page = page if page is not None and page > 0 else 1
    if per_page is None or not 0 < per_page <= settings.max_page_size:
        per_page = settings.default_page_size
    return page, per_page


class FeatureService:
    """Owner-scoped feature mutations and viewer-aware reads."""

    def __init__(self, runner: TransactionRunner) -> None:
        self.runner = runner

    def _get_owned(self, session: Session, user_id: int, feature_id: int) -> Feature:
        feature = FeatureRepository(session).get_by_id(feature_id)
        if feature is None:
            raise FeatureNotFoundError(feature_id)
        if feature.created_by != user_id:
            raise NotOwnerError(user_id, feature_id)
        return feature

    def create_feature(self, user_id: int, title: str, description: str) -> FeatureView:
        """Create a feature owned by ``user_id`` with a vote count of zero.

        Raises:
            ValidationFailedError: If the input is malformed or the creator is unknown.
        """
        title = _clean_title(title)
        description = _clean_description(description)

        def _create(session: Session) -> FeatureView:
            creator = session.get(User, user_id)
            if creator is None:
                raise ValidationFailedError(f"unknown user {user_id}")
            feature = FeatureRepository(session).create(
                title=title, description=description, created_by=user_id
            )
            return _to_view(feature, creator.username, has_user_voted=False)

        try:
            view = self.runner.run(_create, operation="create_feature")
        except IntegrityViolationError as exc:
            # The creator was deleted after the lookup above.
            if exc.kind != FOREIGN_KEY:
                raise
            raise ValidationFailedError(f"unknown user {user_id}") from exc
        logger.info(
            "Feature %s created by user %s",
            view.id,
            user_id,
            extra={"user_id": user_id, "feature_id": view.id},
        )
        return view

    def update_feature(
        self,
        user_id: int,
        feature_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> FeatureView:
        """Edit a feature's title and/or description. Never touches the count.

        Raises:
            ValidationFailedError: If nothing is given or a field is malformed.
            FeatureNotFoundError: If the feature does not exist.
            NotOwnerError: If ``user_id`` did not create the feature.
        """
        if title is None and description is None:
            raise ValidationFailedError("no fields to update")
        title = _clean_title(title) if title is not None else None
        description = _clean_description(description) if description is not None else None

        def _update(session: Session) -> FeatureView:
            feature = self._get_owned(session, user_id, feature_id)
            try:
                FeatureRepository(session).apply_update(
                    feature, title=title, description=description
                )
            except StaleDataError as exc:
                raise FeatureNotFoundError(feature_id) from exc
            creator = session.get(User, user_id)
            return _to_view(feature, creator.username if creator is not None else None)

        view = self.runner.run(_update, operation="update_feature")
        logger.info(
            "Feature %s updated by user %s",
            feature_id,
            user_id,
            extra={"user_id": user_id, "feature_id": feature_id},
        )
        return view

    def delete_feature(self, user_id: int, feature_id: int) -> None:
        """Delete a feature together with every vote cast on it.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
            NotOwnerError: If ``user_id`` did not create the feature.
        """

        def _delete(session: Session) -> int:
            self._get_owned(session, user_id, feature_id)
            removed = VoteLedger(session).remove_all_for_feature(feature_id)
            if not FeatureRepository(session).delete(feature_id):
                raise FeatureNotFoundError(feature_id)
            return removed

        removed_votes = self.runner.run(_delete, operation="delete_feature")
        logger.info(
            "Feature %s deleted by user %s along with %s votes",
            feature_id,
            user_id,
            removed_votes,
            extra={"user_id": user_id, "feature_id": feature_id},
        )

    def get_feature(self, feature_id: int, viewer_id: int | None = None) -> FeatureView:
        """Return one feature, with the viewer's vote status when known.

        Raises:
            FeatureNotFoundError: If the feature does not exist.
        """
        with self.runner.read() as session:
            row = FeatureRepository(session).get_with_creator(feature_id)
            if row is None:
                raise FeatureNotFoundError(feature_id)
            feature, username = row
            view = _to_view(feature, username)
            if viewer_id is not None:
                view = replace(
                    view, has_user_voted=VoteLedger(session).has_voted(viewer_id, feature_id)
                )
            return view

    def list_features(
        self,
        page: int | None = None,
        per_page: int | None = None,
        viewer_id: int | None = None,
    ) -> FeaturePage:
        """Return a page of features ordered by vote count, then recency."""
        page, per_page = normalize_pagination(page, per_page)
        with self.runner.read() as session:
            repo = FeatureRepository(session)
            total = repo.count()
            rows = repo.list_page(limit=per_page, offset=(page - 1) * per_page)
            voted: set[int] = set()
            if viewer_id is not None:
                voted = VoteLedger(session).voted_feature_ids(
                    viewer_id, [feature.id for feature, _ in rows]
                )
            items = [
                _to_view(
                    feature,
                    username,
                    has_user_voted=(feature.id in voted) if viewer_id is not None else None,
                )
                for feature, username in rows
            ]
        return FeaturePage(items=items, total=total, page=page, per_page=per_page)

    def list_features_by_creator(self, user_id: int) -> list[FeatureView]:
        """Return the features ``user_id`` created, newest first."""
        with self.runner.read() as session:
            rows = FeatureRepository(session).list_by_creator(user_id)
            return [_to_view(feature, username) for feature, username in rows]
