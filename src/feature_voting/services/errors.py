"""Typed errors raised by the voting core.

The HTTP layer maps these to responses; the core never builds presentation
strings beyond the exception message.
"""

from __future__ import annotations


class VotingError(RuntimeError):
    """Base exception for every failure the voting core reports."""


class NotFoundError(VotingError):
    """Raised when a feature or vote does not exist."""


class FeatureNotFoundError(NotFoundError):
    """Raised when the referenced feature does not exist (or was deleted)."""

    def __init__(self, feature_id: int) -> None:
        super().__init__(f"feature {feature_id} not found")
        self.feature_id = feature_id


class UserNotFoundError(NotFoundError):
    """Raised when a vote names a user id that does not exist."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user {user_id} not found")
        self.user_id = user_id


class VoteNotFoundError(NotFoundError):
    """Raised when removing a vote the user never cast."""

    def __init__(self, user_id: int, feature_id: int) -> None:
        super().__init__(f"user {user_id} has not voted for feature {feature_id}")
        self.user_id = user_id
        self.feature_id = feature_id


class ConflictError(VotingError):
    """Raised when a mutation conflicts with existing or concurrent state."""


class AlreadyVotedError(ConflictError):
    """Raised on a second vote for the same (user, feature) pair.

    This is a terminal outcome and is never retried.
    """

    def __init__(self, user_id: int, feature_id: int) -> None:
        super().__init__(f"user {user_id} already voted for feature {feature_id}")
        self.user_id = user_id
        self.feature_id = feature_id


class SerializationConflictError(ConflictError):
    """Raised when a transaction kept losing to concurrent writers.

    Callers may retry the whole operation later.
    """

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(f"{operation} aborted after {attempts} conflicting attempts")
        self.operation = operation
        self.attempts = attempts


class ForbiddenError(VotingError):
    """Raised when the acting user may not perform an owner-only mutation."""


class NotOwnerError(ForbiddenError):
    """Raised when someone other than the creator edits or deletes a feature."""

    def __init__(self, user_id: int, feature_id: int) -> None:
        super().__init__(f"user {user_id} does not own feature {feature_id}")
        self.user_id = user_id
        self.feature_id = feature_id


class IntegrityViolationError(VotingError):
    """Raised when a write breaks a foreign key, check or not-null constraint.

    Unlike unique-constraint races these cannot succeed on a re-run, so they
    are raised after the first attempt. ``kind`` is one of ``"foreign_key"``,
    ``"check"``, ``"not_null"`` or ``"unknown"``.
    """

    def __init__(self, operation: str, kind: str, detail: str) -> None:
        super().__init__(f"{operation} violated a {kind} constraint: {detail}")
        self.operation = operation
        self.kind = kind


class ValidationFailedError(VotingError):
    """Raised when create/update input is malformed."""


class StorageUnavailableError(VotingError):
    """Raised when the backing store cannot be reached.

    Never retried inside the core so callers can apply their own backoff.
    """
