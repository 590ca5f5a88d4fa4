"""Repository Protocol for valuation signals and the persisted points column."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_valuation.domain.estimator import ValuationSignals


class ValuationRepositoryProtocol(Protocol):
    async def get_signals(self, db: AsyncSession, book_id: str) -> ValuationSignals | None: ...

    async def save_points(
        self, db: AsyncSession, book_id: str, points: int, calculated_at: datetime
    ) -> None: ...
