"""
Row locking helpers.

Pessimistic locks are taken with ``SELECT ... FOR UPDATE`` inside the
caller's transaction and are released only by its commit or rollback. The
wait for a contended lock is bounded; running out of time surfaces as a
retryable LockTimeout instead of hanging the request.
"""

from __future__ import annotations

from contextlib import contextmanager

import structlog
from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, connections, transaction
from django.db.utils import NotSupportedError

from shared.domain.exceptions import LockTimeout

logger = structlog.get_logger(__name__)

# SQLSTATE lock_not_available, raised by PostgreSQL when lock_timeout fires.
PG_LOCK_NOT_AVAILABLE = "55P03"

_LOCK_MESSAGES = (
    "lock timeout",
    "could not obtain lock",
    "database is locked",
)


def default_lock_timeout_ms() -> int:
    return int(getattr(settings, "BOOKING_LOCK_TIMEOUT_MS", 5000))


def is_lock_timeout(exc: BaseException) -> bool:
    cause = getattr(exc, "__cause__", None)
    pgcode = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if pgcode == PG_LOCK_NOT_AVAILABLE:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_MESSAGES)


def lock_queryset(queryset, using: str = DEFAULT_DB_ALIAS):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection(using).in_atomic_block:
        raise RuntimeError("Row locks must be taken inside an atomic block")

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _apply_lock_timeout(using: str, timeout_ms: int) -> None:
    # Only PostgreSQL can bound the wait for the current transaction alone;
    # other backends keep their server default.
    connection = connections[using]
    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            # SET LOCAL lasts until the end of the enclosing transaction.
            cursor.execute(f"SET LOCAL lock_timeout = {int(timeout_ms)}")


@contextmanager
def bounded_lock_wait(resource: str, timeout_ms: int | None = None, using: str = DEFAULT_DB_ALIAS):
    """
    Run the enclosed locking query with a bounded wait.

    Usage:
        with bounded_lock_wait("schedule 42"):
            schedule = lock_queryset(ScheduleInstance.objects.filter(pk=42)).get()
    """
    timeout_ms = default_lock_timeout_ms() if timeout_ms is None else timeout_ms
    _apply_lock_timeout(using, timeout_ms)
    try:
        yield
    except OperationalError as exc:
        if is_lock_timeout(exc):
            logger.warning("lock.timeout", resource=resource, timeout_ms=timeout_ms)
            raise LockTimeout(resource, timeout_ms) from exc
        raise
