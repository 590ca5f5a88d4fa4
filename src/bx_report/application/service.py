"""ReportService — disputes on completed exchanges and their admin resolution.

A report freezes its exchange (COMPLETED -> DISPUTED). Nothing is reversed:
balances and ownership stay exactly as the approval left them.

Admin outcomes:
  resolve -> report RESOLVED, exchange stays DISPUTED
  reject  -> report REJECTED; exchange back to COMPLETED once no other
             unresolved report remains on it
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.enums import ReportReason, ReportStatus
from src.bx_common.errors import (
    AdminRequiredError,
    AppError,
    ExchangeNotFoundError,
    InvalidReportReasonError,
    InvalidTransitionError,
    ReportNotFoundError,
    UnauthorizedError,
)
from src.bx_common.transaction import run_in_transaction
from src.bx_exchange.domain.models import Exchange
from src.bx_exchange.domain.repository import ExchangeRepositoryProtocol
from src.bx_exchange.domain.state_machine import ExchangeEvent, can_transition, next_status
from src.bx_exchange.infrastructure.persistence import ExchangeRepository
from src.bx_gateway.user.directory import UserDirectory, UserDirectoryProtocol
from src.bx_report.application.schemas import (
    ReportEligibilityResponse,
    ReportListResponse,
    ReportResponse,
    report_to_response,
)
from src.bx_report.domain.models import Report
from src.bx_report.domain.repository import ReportRepositoryProtocol
from src.bx_report.infrastructure.persistence import ReportRepository
from src.bx_risk.rules.description_length import check_description_length
from src.bx_risk.rules.duplicate_report import check_duplicate_report
from src.bx_risk.rules.report_rate_limit import check_report_rate_limit

logger = logging.getLogger(__name__)

_VALID_REASONS = frozenset(r.value for r in ReportReason)


class ReportService:
    def __init__(
        self,
        report_repo: ReportRepositoryProtocol | None = None,
        exchange_repo: ExchangeRepositoryProtocol | None = None,
        users: UserDirectoryProtocol | None = None,
    ) -> None:
        self._reports: ReportRepositoryProtocol = report_repo or ReportRepository()
        self._exchanges: ExchangeRepositoryProtocol = exchange_repo or ExchangeRepository()
        self._users: UserDirectoryProtocol = users or UserDirectory()

    # ------------------------------------------------------------------
    # Member side
    # ------------------------------------------------------------------

    async def create_report(
        self,
        db: AsyncSession,
        exchange_id: str,
        reporter_id: str,
        reason: str,
        description: str | None = None,
    ) -> ReportResponse:
        if reason not in _VALID_REASONS:
            raise InvalidReportReasonError(reason)
        check_description_length(description)
        exchange = await self._check_reportable(db, exchange_id, reporter_id)
        await check_duplicate_report(self._reports, db, exchange_id, reporter_id, reason)

        async def work() -> Report:
            locked = await self._lock_exchange(db, exchange_id)
            target = next_status(locked.status, ExchangeEvent.REPORT)
            assert target is not None
            report = await self._reports.insert(
                db,
                Report(
                    id=str(uuid.uuid4()),
                    exchange_id=exchange_id,
                    book_id=exchange.book_id,
                    reporter_id=reporter_id,
                    reason=reason,
                    description=description,
                    status=ReportStatus.OPEN.value,
                ),
            )
            await self._exchanges.update_status(db, exchange_id, target.value)
            return report

        report = await run_in_transaction(db, work, label="create report")
        logger.info(
            "Report %s created on exchange %s by %s (%s); exchange disputed",
            report.id, exchange_id, reporter_id, reason,
        )
        return report_to_response(report)

    async def can_user_report(
        self, db: AsyncSession, exchange_id: str, user_id: str
    ) -> ReportEligibilityResponse:
        try:
            await self._check_reportable(db, exchange_id, user_id)
        except AppError as exc:
            return ReportEligibilityResponse(can_report=False, reason=exc.message)
        return ReportEligibilityResponse(can_report=True)

    async def get_report(self, db: AsyncSession, report_id: str, user_id: str) -> ReportResponse:
        report = await self._reports.get_by_id(db, report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        if report.reporter_id != user_id:
            exchange = await self._exchanges.get_by_id(db, report.exchange_id)
            allowed = exchange is not None and exchange.is_participant(user_id)
            if not allowed and not await self._users.is_admin(db, user_id):
                raise UnauthorizedError("You cannot view this report")
        return report_to_response(report)

    async def list_reports_for_exchange(
        self, db: AsyncSession, exchange_id: str, user_id: str
    ) -> ReportListResponse:
        exchange = await self._exchanges.get_by_id(db, exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        if not exchange.is_participant(user_id):
            raise UnauthorizedError("Only participants can view reports for this exchange")
        reports = await self._reports.list_by_exchange(db, exchange_id)
        return ReportListResponse(items=[report_to_response(r) for r in reports])

    async def list_user_reports(self, db: AsyncSession, user_id: str) -> ReportListResponse:
        reports = await self._reports.list_by_reporter(db, user_id)
        return ReportListResponse(items=[report_to_response(r) for r in reports])

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------

    async def list_all_reports(
        self, db: AsyncSession, admin_id: str, status: str | None = None
    ) -> ReportListResponse:
        await self._require_admin(db, admin_id)
        reports = await self._reports.list_all(db, status)
        return ReportListResponse(items=[report_to_response(r) for r in reports])

    async def resolve_report(
        self, db: AsyncSession, report_id: str, admin_id: str
    ) -> ReportResponse:
        await self._require_admin(db, admin_id)
        _check_unresolved(await self._get(db, report_id), "resolve")

        async def work() -> Report:
            report = await self._get(db, report_id, for_update=True)
            _check_unresolved(report, "resolve")
            return await self._reports.update_status(db, report_id, ReportStatus.RESOLVED.value)

        report = await run_in_transaction(db, work, label="resolve report")
        logger.info(
            "Report %s resolved by admin %s; exchange %s stays disputed",
            report_id, admin_id, report.exchange_id,
        )
        return report_to_response(report)

    async def reject_report(
        self, db: AsyncSession, report_id: str, admin_id: str
    ) -> ReportResponse:
        await self._require_admin(db, admin_id)
        report = await self._get(db, report_id)
        _check_unresolved(report, "reject")
        exchange = await self._exchanges.get_by_id(db, report.exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(report.exchange_id)
        _check_disputed(exchange)

        async def work() -> tuple[Report, bool]:
            # Exchange first: concurrent rejections on the same exchange
            # serialize here, so exactly one of them sees zero remaining.
            locked = await self._lock_exchange(db, report.exchange_id)
            _check_disputed(locked)
            current = await self._get(db, report_id, for_update=True)
            _check_unresolved(current, "reject")
            rejected = await self._reports.update_status(
                db, report_id, ReportStatus.REJECTED.value
            )
            remaining = await self._reports.count_unresolved_for_exchange(
                db, locked.id, exclude_report_id=report_id
            )
            if remaining:
                return rejected, False
            target = next_status(locked.status, ExchangeEvent.RESTORE)
            assert target is not None
            await self._exchanges.update_status(db, locked.id, target.value)
            return rejected, True

        rejected, restored = await run_in_transaction(db, work, label="reject report")
        logger.info("Report %s rejected by admin %s", report_id, admin_id)
        if restored:
            logger.info("Exchange %s restored to COMPLETED", rejected.exchange_id)
        return report_to_response(rejected)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _check_reportable(
        self, db: AsyncSession, exchange_id: str, user_id: str
    ) -> Exchange:
        exchange = await self._exchanges.get_by_id(db, exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        if not exchange.is_participant(user_id):
            raise UnauthorizedError("Only users involved in the exchange can report issues")
        next_status(exchange.status, ExchangeEvent.REPORT)
        await check_report_rate_limit(self._reports, db, user_id)
        return exchange

    async def _require_admin(self, db: AsyncSession, user_id: str) -> None:
        if not await self._users.is_admin(db, user_id):
            raise AdminRequiredError()

    async def _get(self, db: AsyncSession, report_id: str, *, for_update: bool = False) -> Report:
        report = await self._reports.get_by_id(db, report_id, for_update=for_update)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    async def _lock_exchange(self, db: AsyncSession, exchange_id: str) -> Exchange:
        exchange = await self._exchanges.get_by_id(db, exchange_id, for_update=True)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        return exchange


def _check_unresolved(report: Report, action: str) -> None:
    if not report.is_unresolved:
        raise InvalidTransitionError("report", report.status, action)


def _check_disputed(exchange: Exchange) -> None:
    if not can_transition(exchange.status, ExchangeEvent.RESTORE):
        raise InvalidTransitionError("exchange", exchange.status, "restore")
