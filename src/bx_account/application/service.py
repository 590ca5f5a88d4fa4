"""AccountApplicationService — read side of the points ledger.

Balances change only inside the exchange approval transaction
(src.bx_exchange.application.service); nothing here writes.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_account.application.schemas import (
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.bx_account.domain.repository import AccountRepositoryProtocol
from src.bx_account.infrastructure.persistence import AccountRepository
from src.bx_common.errors import AccountNotFoundError


class AccountApplicationService:
    def __init__(self, repo: AccountRepositoryProtocol | None = None) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse(user_id=user_id, point_balance=account.point_balance)

    async def list_ledger(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> LedgerResponse:
        # one extra row tells us whether another page exists
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_decode(cursor), limit + 1
        )
        page, has_more = entries[:limit], len(entries) > limit
        return LedgerResponse(
            items=[LedgerEntryItem.from_entry(e) for e in page],
            next_cursor=cursor_encode(page[-1].id) if has_more and page else None,
            has_more=has_more,
        )
