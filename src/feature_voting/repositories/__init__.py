"""Data access helpers bound to a single SQLAlchemy session."""

from .feature_repo import FeatureRepository
from .vote_counter import VoteCounter
from .vote_ledger import VoteLedger

__all__ = ["FeatureRepository", "VoteCounter", "VoteLedger"]
