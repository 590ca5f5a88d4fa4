"""ReportService against the in-memory fakes."""

import pytest

from src.bx_common.errors import (
    AdminRequiredError,
    DescriptionTooLongError,
    DuplicateReportError,
    ExchangeNotFoundError,
    InvalidReportReasonError,
    InvalidTransitionError,
    ReportNotFoundError,
    ReportRateLimitError,
    UnauthorizedError,
)
from src.bx_report.domain.models import Report
from tests.unit.fakes import World


async def _completed_exchange(world: World) -> str:
    world.store.add_account("alice", 30)
    world.store.add_account("carol", 20)
    world.store.add_book("x", "alice", points=12)
    world.store.add_admin("admin")
    req = await world.exchanges.request_exchange(world.db, "x", "carol")
    await world.exchanges.approve_exchange(world.db, req.id, "alice")
    return req.id


class TestCreateReport:
    async def test_freezes_exchange(self, world: World) -> None:
        ex_id = await _completed_exchange(world)

        report = await world.reports.create_report(
            world.db, ex_id, "carol", "DAMAGED_BOOK", "Water damage on every page"
        )

        assert report.status == "OPEN"
        assert report.book_id == "x"
        assert world.store.t.exchanges[ex_id].status == "DISPUTED"

    async def test_invalid_reason(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        with pytest.raises(InvalidReportReasonError):
            await world.reports.create_report(world.db, ex_id, "carol", "BORING")

    async def test_description_too_long(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        with pytest.raises(DescriptionTooLongError):
            await world.reports.create_report(world.db, ex_id, "carol", "OTHER", "x" * 1001)

    async def test_unknown_exchange(self, world: World) -> None:
        with pytest.raises(ExchangeNotFoundError):
            await world.reports.create_report(world.db, "nope", "carol", "OTHER")

    async def test_non_participant(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        with pytest.raises(UnauthorizedError):
            await world.reports.create_report(world.db, ex_id, "mallory", "OTHER")

    async def test_pending_exchange_cannot_be_reported(self, world: World) -> None:
        world.store.add_account("carol", 20)
        world.store.add_book("x", "alice", points=12)
        req = await world.exchanges.request_exchange(world.db, "x", "carol")
        with pytest.raises(InvalidTransitionError):
            await world.reports.create_report(world.db, req.id, "carol", "OTHER")

    async def test_disputed_exchange_cannot_be_reported_again(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        with pytest.raises(InvalidTransitionError):
            await world.reports.create_report(world.db, ex_id, "alice", "OTHER")

    async def test_duplicate(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        # reopen the exchange so only the duplicate guard can trip
        world.store.t.exchanges[ex_id].status = "COMPLETED"
        world.store.checkpoint()
        with pytest.raises(DuplicateReportError):
            await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")

    async def test_rate_limited(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        for i in range(3):
            world.store.t.reports[f"r{i}"] = Report(
                id=f"r{i}", exchange_id=f"other-{i}", book_id="y", reporter_id="carol",
                reason="OTHER", description=None, status="REJECTED",
                created_at=world.store.t.exchanges[ex_id].completed_at,
            )
        world.store.checkpoint()
        with pytest.raises(ReportRateLimitError):
            await world.reports.create_report(world.db, ex_id, "carol", "WRONG_BOOK")


class TestEligibility:
    async def test_eligible(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        result = await world.reports.can_user_report(world.db, ex_id, "carol")
        assert result.can_report is True
        assert result.reason is None

    async def test_not_eligible_gives_reason(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        result = await world.reports.can_user_report(world.db, ex_id, "mallory")
        assert result.can_report is False
        assert "involved" in result.reason


class TestAdminDecisions:
    async def test_resolve_keeps_exchange_disputed(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")

        resolved = await world.reports.resolve_report(world.db, report.id, "admin")

        assert resolved.status == "RESOLVED"
        assert world.store.t.exchanges[ex_id].status == "DISPUTED"

    async def test_non_admin_rejected(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        with pytest.raises(AdminRequiredError):
            await world.reports.resolve_report(world.db, report.id, "alice")
        with pytest.raises(UnauthorizedError):
            await world.reports.reject_report(world.db, report.id, "carol")

    async def test_unknown_report(self, world: World) -> None:
        world.store.add_admin("admin")
        with pytest.raises(ReportNotFoundError):
            await world.reports.resolve_report(world.db, "nope", "admin")

    async def test_reject_restores_exchange(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")

        rejected = await world.reports.reject_report(world.db, report.id, "admin")

        assert rejected.status == "REJECTED"
        assert world.store.t.exchanges[ex_id].status == "COMPLETED"

    async def test_reject_keeps_dispute_while_other_report_open(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        first = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        world.store.t.reports["second"] = Report(
            id="second", exchange_id=ex_id, book_id="x", reporter_id="alice",
            reason="OTHER", description=None, status="OPEN",
        )
        world.store.checkpoint()

        await world.reports.reject_report(world.db, first.id, "admin")
        assert world.store.t.exchanges[ex_id].status == "DISPUTED"

        await world.reports.reject_report(world.db, "second", "admin")
        assert world.store.t.exchanges[ex_id].status == "COMPLETED"

    async def test_report_under_review_also_keeps_dispute(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        first = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        world.store.t.reports["reviewing"] = Report(
            id="reviewing", exchange_id=ex_id, book_id="x", reporter_id="alice",
            reason="OTHER", description=None, status="UNDER_REVIEW",
        )
        world.store.checkpoint()

        await world.reports.reject_report(world.db, first.id, "admin")

        assert world.store.t.exchanges[ex_id].status == "DISPUTED"

    async def test_decided_report_cannot_be_decided_again(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "DAMAGED_BOOK")
        await world.reports.resolve_report(world.db, report.id, "admin")
        with pytest.raises(InvalidTransitionError):
            await world.reports.resolve_report(world.db, report.id, "admin")
        with pytest.raises(InvalidTransitionError):
            await world.reports.reject_report(world.db, report.id, "admin")


class TestReportReads:
    async def test_get_report_visibility(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "WRONG_BOOK")
        assert (await world.reports.get_report(world.db, report.id, "carol")).id == report.id
        assert (await world.reports.get_report(world.db, report.id, "alice")).id == report.id
        assert (await world.reports.get_report(world.db, report.id, "admin")).id == report.id
        with pytest.raises(UnauthorizedError):
            await world.reports.get_report(world.db, report.id, "mallory")

    async def test_listings(self, world: World) -> None:
        ex_id = await _completed_exchange(world)
        report = await world.reports.create_report(world.db, ex_id, "carol", "WRONG_BOOK")

        by_exchange = await world.reports.list_reports_for_exchange(world.db, ex_id, "alice")
        assert [r.id for r in by_exchange.items] == [report.id]
        with pytest.raises(UnauthorizedError):
            await world.reports.list_reports_for_exchange(world.db, ex_id, "mallory")

        mine = await world.reports.list_user_reports(world.db, "carol")
        assert [r.id for r in mine.items] == [report.id]

        open_queue = await world.reports.list_all_reports(world.db, "admin", "OPEN")
        assert [r.id for r in open_queue.items] == [report.id]
        assert (await world.reports.list_all_reports(world.db, "admin", "RESOLVED")).items == []
        with pytest.raises(AdminRequiredError):
            await world.reports.list_all_reports(world.db, "carol")
