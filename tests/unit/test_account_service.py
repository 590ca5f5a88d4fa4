"""Unit tests for AccountApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bx_account.application.schemas import LedgerResponse, cursor_decode, cursor_encode
from src.bx_account.application.service import AccountApplicationService
from src.bx_account.domain.models import Account, LedgerEntry
from src.bx_common.errors import AccountNotFoundError


def _make_account(points: int = 20) -> Account:
    return Account(id="uuid-1", user_id="user-1", point_balance=points, version=1)


def _make_entry(entry_id: int, amount: int = 12) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        user_id="user-1",
        entry_type="EXCHANGE_CREDIT" if amount > 0 else "EXCHANGE_DEBIT",
        amount=amount,
        balance_after=20 + amount,
        reference_type="EXCHANGE",
        reference_id="ex-1",
        created_at=datetime.now(UTC),
    )


class TestGetBalance:
    async def test_returns_balance(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account_by_user_id.return_value = _make_account(42)
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.get_balance(MagicMock(), "user-1")

        assert result.point_balance == 42
        assert result.user_id == "user-1"

    async def test_missing_account(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.get_account_by_user_id.return_value = None
        svc = AccountApplicationService(repo=mock_repo)

        with pytest.raises(AccountNotFoundError) as exc_info:
            await svc.get_balance(MagicMock(), "ghost")
        assert exc_info.value.http_status == 404


class TestListLedger:
    async def test_has_more_and_cursor(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [_make_entry(i) for i in (5, 4, 3)]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(MagicMock(), "user-1", None, 2)

        assert isinstance(result, LedgerResponse)
        assert [item.id for item in result.items] == [5, 4]
        assert result.has_more is True
        assert cursor_decode(result.next_cursor) == 4
        # limit + 1 fetched to detect has_more
        assert mock_repo.list_ledger_entries.await_args.args[3] == 3

    async def test_last_page(self) -> None:
        mock_repo = AsyncMock()
        mock_repo.list_ledger_entries.return_value = [_make_entry(1, -12)]
        svc = AccountApplicationService(repo=mock_repo)

        result = await svc.list_ledger(MagicMock(), "user-1", cursor_encode(2), 20)

        assert result.has_more is False
        assert result.next_cursor is None
        assert result.items[0].amount == -12
        assert mock_repo.list_ledger_entries.await_args.args[2] == 2


class TestCursor:
    def test_garbage_cursor_is_ignored(self) -> None:
        assert cursor_decode("not-base64!!") is None
        assert cursor_decode(None) is None
