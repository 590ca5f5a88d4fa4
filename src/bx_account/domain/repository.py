"""Repository Protocol for point accounts and their ledger.

Points only move through transfer(), inside the caller's approval
transaction; there is no standalone credit or debit.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_account.domain.models import Account, LedgerEntry


class AccountRepositoryProtocol(Protocol):
    async def get_account_by_user_id(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def transfer(
        self,
        db: AsyncSession,
        from_user_id: str,
        to_user_id: str,
        amount: int,
        exchange_id: str,
    ) -> tuple[Account, Account]:
        """Debit payer, credit payee, append both ledger rows. Returns (payer, payee)."""
        ...

    async def list_ledger_entries(
        self, db: AsyncSession, user_id: str, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        """Newest first, ids strictly below cursor_id when given."""
        ...
