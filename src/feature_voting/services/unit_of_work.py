"""Serializable transactions with bounded retry on conflict.

Every ledger + counter mutation runs through :class:`TransactionRunner`. The
runner opens a fresh session per attempt at SERIALIZABLE isolation, commits
on success and rolls back on any failure, so an attempt either applies in
full or leaves no trace.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session, sessionmaker

from feature_voting.core.settings import settings
from feature_voting.services.errors import (
    IntegrityViolationError,
    SerializationConflictError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SERIALIZABLE = "SERIALIZABLE"

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
_RETRYABLE_MESSAGES = (
    "could not serialize access",
    "database is locked",
    "database table is locked",
    "deadlock detected",
)

UNIQUE = "unique"
FOREIGN_KEY = "foreign_key"
CHECK = "check"
NOT_NULL = "not_null"

_INTEGRITY_SQLSTATES = {
    "23505": UNIQUE,
    "23503": FOREIGN_KEY,
    "23514": CHECK,
    "23502": NOT_NULL,
}
# SQLite reports the constraint type only in the message.
_INTEGRITY_MESSAGES = (
    ("unique constraint failed", UNIQUE),
    ("foreign key constraint failed", FOREIGN_KEY),
    ("check constraint failed", CHECK),
    ("not null constraint failed", NOT_NULL),
)


def _sqlstate(error: sa_exc.DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_serialization_failure(error: sa_exc.DBAPIError) -> bool:
    """Return True if ``error`` means a concurrent writer won the race."""
    if _sqlstate(error) in _RETRYABLE_SQLSTATES:
        return True
    message = str(error.orig).lower()
    return any(marker in message for marker in _RETRYABLE_MESSAGES)


def integrity_violation_kind(error: sa_exc.IntegrityError) -> str:
    """Return which kind of constraint ``error`` violated."""
    kind = _INTEGRITY_SQLSTATES.get(_sqlstate(error) or "")
    if kind is not None:
        return kind
    message = str(error.orig).lower()
    for marker, marker_kind in _INTEGRITY_MESSAGES:
        if marker in message:
            return marker_kind
    return "unknown"


def is_storage_unavailable(error: Exception) -> bool:
    """Return True if ``error`` means the store could not be reached."""
    if isinstance(error, sa_exc.TimeoutError):
        return True
    if isinstance(error, sa_exc.DBAPIError):
        if error.connection_invalidated:
            return True
        if isinstance(error, sa_exc.OperationalError | sa_exc.InterfaceError):
            return not is_serialization_failure(error)
    return False


class TransactionRunner:
    """Run units of work in serializable transactions, retrying conflicts.

    Args:
        session_factory: Factory producing sessions bound to the shared store.
        max_attempts: Total attempts before a conflict is surfaced.
        backoff_seconds: Base delay; attempt ``n`` sleeps roughly ``n`` times it.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.max_attempts = (
            settings.vote_tx_max_attempts if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.backoff_seconds = (
            settings.vote_tx_retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        )

    @contextmanager
    def begin(self, isolation_level: str = SERIALIZABLE) -> Iterator[Session]:
        """Yield a session inside one transaction at ``isolation_level``."""
        with self.session_factory() as session, session.begin():
            session.connection(execution_options={"isolation_level": isolation_level})
            yield session

    @contextmanager
    def read(self) -> Iterator[Session]:
        """Yield a session for read-only queries against committed state."""
        with self.session_factory() as session:
            try:
                yield session
            except sa_exc.DBAPIError as error:
                if is_storage_unavailable(error):
                    raise StorageUnavailableError(str(error.orig)) from error
                raise
            except sa_exc.TimeoutError as error:
                raise StorageUnavailableError(str(error)) from error

    def _sleep_before_retry(self, attempt: int) -> None:
        if self.backoff_seconds <= 0:
            return
        time.sleep(self.backoff_seconds * attempt * random.uniform(0.5, 1.5))

    def run(self, work: Callable[[Session], T], *, operation: str) -> T:
        """Run ``work`` in a serializable transaction and return its result.

        ``work`` may be called more than once, so it must derive everything
        from the session it is handed. Domain errors raised by ``work`` roll
        the transaction back and propagate unchanged. Only serialization
        failures and unique-constraint races are retried.

        Raises:
            SerializationConflictError: If every attempt hit a conflict.
            StorageUnavailableError: If the store could not be reached.
            IntegrityViolationError: If a write broke a non-unique constraint.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.begin() as session:
                    return work(session)
            except sa_exc.IntegrityError as error:
                kind = integrity_violation_kind(error)
                if kind != UNIQUE:
                    logger.warning(
                        "%s violated a %s constraint",
                        operation,
                        kind,
                        extra={"operation": operation},
                    )
                    raise IntegrityViolationError(operation, kind, str(error.orig)) from error
                # A racing insert slipped in between our read and our write;
                # the next attempt re-reads and reaches the right outcome.
                last_error = error
            except (sa_exc.DBAPIError, sa_exc.TimeoutError) as error:
                if is_storage_unavailable(error):
                    detail = str(getattr(error, "orig", None) or error)
                    raise StorageUnavailableError(detail) from error
                if not (isinstance(error, sa_exc.DBAPIError) and is_serialization_failure(error)):
                    raise
                last_error = error
            logger.info(
                "Retrying %s after conflict (attempt %d of %d)",
                operation,
                attempt,
                self.max_attempts,
            )
            if attempt < self.max_attempts:
                self._sleep_before_retry(attempt)
        logger.warning("Giving up on %s after %d attempts", operation, self.max_attempts)
        raise SerializationConflictError(operation, self.max_attempts) from last_error
