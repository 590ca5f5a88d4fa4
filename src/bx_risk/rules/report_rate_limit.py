"""Per-reporter report rate limit over a trailing window.

Advisory: evaluated before the report transaction opens, so two reports
submitted at the same instant can both pass.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bx_common.datetime_utils import window_start
from src.bx_common.errors import ReportRateLimitError
from src.bx_report.domain.repository import ReportRepositoryProtocol


async def is_report_rate_limited(
    reports: ReportRepositoryProtocol, db: AsyncSession, reporter_id: str
) -> bool:
    since = window_start(hours=settings.REPORT_RATE_LIMIT_WINDOW_HOURS)
    count = await reports.count_by_reporter_since(db, reporter_id, since)
    return count >= settings.REPORT_RATE_LIMIT_MAX


async def check_report_rate_limit(
    reports: ReportRepositoryProtocol, db: AsyncSession, reporter_id: str
) -> None:
    if await is_report_rate_limited(reports, db, reporter_id):
        raise ReportRateLimitError(
            settings.REPORT_RATE_LIMIT_MAX, settings.REPORT_RATE_LIMIT_WINDOW_HOURS
        )
