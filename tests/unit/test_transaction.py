"""Tests for run_in_transaction: commit, rollback, bounded retry."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import DBAPIError

from src.bx_common.errors import InsufficientPointsError, TransactionConflictError
from src.bx_common.transaction import is_retryable, run_in_transaction


class _DriverError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _db_error(sqlstate: str) -> DBAPIError:
    return DBAPIError("UPDATE accounts ...", None, _DriverError(sqlstate))


def _make_db() -> MagicMock:
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    return db


class TestIsRetryable:
    def test_serialization_failure(self) -> None:
        assert is_retryable(_db_error("40001"))

    def test_deadlock(self) -> None:
        assert is_retryable(_db_error("40P01"))

    def test_check_violation_not_retryable(self) -> None:
        assert not is_retryable(_db_error("23514"))


class TestRunInTransaction:
    async def test_commits_and_returns_result(self) -> None:
        db = _make_db()
        work = AsyncMock(return_value="done")

        result = await run_in_transaction(db, work)

        assert result == "done"
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_business_error_rolls_back_without_retry(self) -> None:
        db = _make_db()
        work = AsyncMock(side_effect=InsufficientPointsError(12, 5))

        with pytest.raises(InsufficientPointsError):
            await run_in_transaction(db, work)

        assert work.await_count == 1
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_retries_serialization_failure_then_succeeds(self) -> None:
        db = _make_db()
        work = AsyncMock(side_effect=[_db_error("40001"), "ok"])

        result = await run_in_transaction(db, work, max_attempts=3)

        assert result == "ok"
        assert work.await_count == 2
        db.rollback.assert_awaited_once()
        db.commit.assert_awaited_once()

    async def test_gives_up_after_max_attempts(self) -> None:
        db = _make_db()
        work = AsyncMock(side_effect=_db_error("40P01"))

        with pytest.raises(TransactionConflictError) as exc_info:
            await run_in_transaction(db, work, max_attempts=3)

        assert exc_info.value.http_status == 409
        assert work.await_count == 3
        assert db.rollback.await_count == 3
        db.commit.assert_not_awaited()

    async def test_non_retryable_db_error_propagates(self) -> None:
        db = _make_db()
        work = AsyncMock(side_effect=_db_error("23514"))

        with pytest.raises(DBAPIError):
            await run_in_transaction(db, work, max_attempts=3)

        assert work.await_count == 1
