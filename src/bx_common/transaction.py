"""Transaction runner with bounded retry on serialization failure / deadlock.

Every state-changing service method follows the same shape:

    validate (read-only, advisory)
    -> run_in_transaction(db, work)
         work(): lock rows FOR UPDATE, re-validate, write
       -> COMMIT, or ROLLBACK on any exception

Only SQLSTATE 40001 (serialization_failure) and 40P01 (deadlock_detected)
are retried; the whole unit of work is re-run from its first statement, so
it re-reads every row it depends on. Business errors (AppError) and every
other database error roll back and propagate on the first occurrence.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bx_common.errors import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_retryable(exc: DBAPIError) -> bool:
    """True if the driver error is a serialization failure or deadlock."""
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in _RETRYABLE_SQLSTATES


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    label: str = "unit of work",
    max_attempts: int | None = None,
) -> T:
    """Run work() and commit; roll back on failure; retry conflicts.

    Raises TransactionConflictError once max_attempts conflicts have been seen.
    """
    attempts = max_attempts or settings.TX_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            result = await work()
            await db.commit()
            return result
        except DBAPIError as exc:
            await db.rollback()
            if not is_retryable(exc):
                raise
            if attempt == attempts:
                logger.error("%s: giving up after %d conflicting attempts", label, attempt)
                raise TransactionConflictError() from exc
            logger.warning("%s: transaction conflict (attempt %d/%d), retrying", label, attempt, attempts)
        except Exception:
            await db.rollback()
            raise
    raise TransactionConflictError()  # unreachable: attempts >= 1
