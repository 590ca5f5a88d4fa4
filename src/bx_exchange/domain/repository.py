"""Repository Protocol for exchanges.

Unit tests inject an in-memory fake conforming to this Protocol.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_exchange.domain.models import Exchange


class ExchangeRepositoryProtocol(Protocol):
    async def get_by_id(
        self, db: AsyncSession, exchange_id: str, *, for_update: bool = False
    ) -> Exchange | None: ...

    async def has_active_for_book(self, db: AsyncSession, book_id: str) -> bool: ...

    async def insert(self, db: AsyncSession, exchange: Exchange) -> Exchange: ...

    async def update_status(
        self,
        db: AsyncSession,
        exchange_id: str,
        status: str,
        *,
        completed_at: datetime | None = None,
    ) -> Exchange: ...

    async def delete(self, db: AsyncSession, exchange_id: str) -> None: ...

    async def exists_completed_since(
        self, db: AsyncSession, from_user_id: str, to_user_id: str, since: datetime
    ) -> bool: ...

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[Exchange]: ...

    async def list_pending_for_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[Exchange]: ...
