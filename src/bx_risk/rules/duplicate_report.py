"""Same reporter, same exchange, same reason.

The unique constraint on reports backs this check; the repository maps a
violation to DuplicateReportError as well.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.errors import DuplicateReportError
from src.bx_report.domain.repository import ReportRepositoryProtocol


async def is_duplicate_report(
    reports: ReportRepositoryProtocol,
    db: AsyncSession,
    exchange_id: str,
    reporter_id: str,
    reason: str,
) -> bool:
    return await reports.exists_for(db, exchange_id, reporter_id, reason)


async def check_duplicate_report(
    reports: ReportRepositoryProtocol,
    db: AsyncSession,
    exchange_id: str,
    reporter_id: str,
    reason: str,
) -> None:
    if await is_duplicate_report(reports, db, exchange_id, reporter_id, reason):
        raise DuplicateReportError()
