"""Repository Protocol for reports.

Report content (reason, description) is immutable after insert; only
status advances.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_report.domain.models import Report


class ReportRepositoryProtocol(Protocol):
    async def get_by_id(
        self, db: AsyncSession, report_id: str, *, for_update: bool = False
    ) -> Report | None: ...

    async def insert(self, db: AsyncSession, report: Report) -> Report: ...

    async def update_status(self, db: AsyncSession, report_id: str, status: str) -> Report: ...

    async def exists_for(
        self, db: AsyncSession, exchange_id: str, reporter_id: str, reason: str
    ) -> bool: ...

    async def count_by_reporter_since(
        self, db: AsyncSession, reporter_id: str, since: datetime
    ) -> int: ...

    async def count_unresolved_for_exchange(
        self, db: AsyncSession, exchange_id: str, *, exclude_report_id: str | None = None
    ) -> int: ...

    async def list_by_exchange(self, db: AsyncSession, exchange_id: str) -> list[Report]: ...

    async def list_by_reporter(self, db: AsyncSession, reporter_id: str) -> list[Report]: ...

    async def list_all(self, db: AsyncSession, status: str | None) -> list[Report]: ...
