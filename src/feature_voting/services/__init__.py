"""Business logic services for the feature voting core."""

from .errors import (
    AlreadyVotedError,
    ConflictError,
    FeatureNotFoundError,
    ForbiddenError,
    IntegrityViolationError,
    NotFoundError,
    NotOwnerError,
    SerializationConflictError,
    StorageUnavailableError,
    UserNotFoundError,
    ValidationFailedError,
    VoteNotFoundError,
    VotingError,
)
from .features import FeaturePage, FeatureService, FeatureView
from .unit_of_work import TransactionRunner
from .voting import ReconcileResult, VoteRecord, VoteResult, VotingService

__all__ = [
    "AlreadyVotedError",
    "ConflictError",
    "FeatureNotFoundError",
    "FeaturePage",
    "FeatureService",
    "FeatureView",
    "ForbiddenError",
    "IntegrityViolationError",
    "NotFoundError",
    "NotOwnerError",
    "ReconcileResult",
    "SerializationConflictError",
    "StorageUnavailableError",
    "TransactionRunner",
    "UserNotFoundError",
    "ValidationFailedError",
    "VoteNotFoundError",
    "VoteRecord",
    "VoteResult",
    "VotingError",
    "VotingService",
]
