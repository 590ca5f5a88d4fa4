"""In-memory repositories conforming to the domain Protocols.

One InMemoryStore backs every fake repository. FakeSession.commit()
snapshots the store and FakeSession.rollback() restores the last snapshot,
so a failed run_in_transaction leaves no partial writes behind, as it would
against PostgreSQL.
"""

import copy
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from src.bx_account.domain.models import Account, LedgerEntry
from src.bx_book.application.service import BookService
from src.bx_book.domain.models import Book
from src.bx_common.datetime_utils import utc_now
from src.bx_common.enums import BookCondition, ExchangeStatus, LedgerEntryType
from src.bx_common.errors import (
    AccountNotFoundError,
    ActiveExchangeExistsError,
    BookNotFoundError,
    DuplicateReportError,
    ExchangeNotFoundError,
    InsufficientPointsError,
    InternalError,
    ReportNotFoundError,
)
from src.bx_exchange.application.service import ExchangeService
from src.bx_exchange.domain.models import Exchange
from src.bx_report.application.service import ReportService
from src.bx_report.domain.models import UNRESOLVED_STATUSES, Report
from src.bx_valuation.application.service import BookValuationService
from src.bx_valuation.domain.estimator import ValuationSignals


@dataclass
class _Tables:
    accounts: dict[str, Account] = field(default_factory=dict)
    books: dict[str, Book] = field(default_factory=dict)
    exchanges: dict[str, Exchange] = field(default_factory=dict)
    reports: dict[str, Report] = field(default_factory=dict)
    ledger: list[LedgerEntry] = field(default_factory=list)
    wishlist: dict[str, int] = field(default_factory=dict)
    admins: set[str] = field(default_factory=set)


class InMemoryStore:
    def __init__(self) -> None:
        self.t = _Tables()
        self._committed = copy.deepcopy(self.t)

    def checkpoint(self) -> None:
        self._committed = copy.deepcopy(self.t)

    def restore(self) -> None:
        self.t = copy.deepcopy(self._committed)

    # --- seeding helpers (committed immediately) ---

    def add_account(self, user_id: str, points: int) -> None:
        self.t.accounts[user_id] = Account(
            id=f"acct-{user_id}", user_id=user_id, point_balance=points, version=0
        )
        self.checkpoint()

    def add_book(
        self,
        book_id: str,
        owner_id: str,
        *,
        points: int | None = None,
        condition: str = BookCondition.GOOD.value,
        title: str | None = None,
        author: str = "Anon",
    ) -> None:
        self.t.books[book_id] = Book(
            id=book_id,
            owner_id=owner_id,
            title=title or f"Title of {book_id}",
            author=author,
            condition=condition,
            computed_points=points,
            points_last_calculated_at=utc_now() if points is not None else None,
        )
        self.checkpoint()

    def add_admin(self, user_id: str) -> None:
        self.t.admins.add(user_id)
        self.checkpoint()

    def balance(self, user_id: str) -> int:
        return self.t.accounts[user_id].point_balance


class FakeSession:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.store.checkpoint()
        self.commits += 1

    async def rollback(self) -> None:
        self.store.restore()
        self.rollbacks += 1


_T = TypeVar("_T")


def _copy(obj: _T) -> _T:
    return dataclasses.replace(obj)


class FakeAccountRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def get_account_by_user_id(self, db: Any, user_id: str) -> Account | None:
        account = self._s.t.accounts.get(user_id)
        return _copy(account) if account else None

    async def transfer(
        self, db: Any, from_user_id: str, to_user_id: str, amount: int, exchange_id: str
    ) -> tuple[Account, Account]:
        if amount <= 0 or from_user_id == to_user_id:
            raise InternalError("Invalid transfer")
        accounts = self._s.t.accounts
        for user_id in (from_user_id, to_user_id):
            if user_id not in accounts:
                raise AccountNotFoundError(user_id)
        payer, payee = accounts[from_user_id], accounts[to_user_id]
        if payer.point_balance < amount:
            raise InsufficientPointsError(amount, payer.point_balance)
        payer.point_balance -= amount
        payee.point_balance += amount
        for account, entry_type, signed in (
            (payer, LedgerEntryType.EXCHANGE_DEBIT, -amount),
            (payee, LedgerEntryType.EXCHANGE_CREDIT, amount),
        ):
            self._s.t.ledger.append(
                LedgerEntry(
                    id=len(self._s.t.ledger) + 1,
                    user_id=account.user_id,
                    entry_type=entry_type.value,
                    amount=signed,
                    balance_after=account.point_balance,
                    reference_type="EXCHANGE",
                    reference_id=exchange_id,
                    created_at=utc_now(),
                )
            )
        return _copy(payer), _copy(payee)

    async def list_ledger_entries(
        self, db: Any, user_id: str, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        rows = [e for e in reversed(self._s.t.ledger) if e.user_id == user_id]
        if cursor_id is not None:
            rows = [e for e in rows if e.id < cursor_id]
        return rows[:limit]


class FakeBookRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def get_by_id(self, db: Any, book_id: str, *, for_update: bool = False) -> Book | None:
        book = self._s.t.books.get(book_id)
        return _copy(book) if book else None

    def _row(self, book_id: str) -> Book:
        if book_id not in self._s.t.books:
            raise BookNotFoundError(book_id)
        return self._s.t.books[book_id]

    async def transfer_ownership(self, db: Any, book_id: str, new_owner_id: str) -> Book:
        book = self._row(book_id)
        book.owner_id = new_owner_id
        book.is_available = True
        return _copy(book)

    async def set_availability(self, db: Any, book_id: str, is_available: bool) -> Book:
        book = self._row(book_id)
        if book.is_deleted:
            raise BookNotFoundError(book_id)
        book.is_available = is_available
        return _copy(book)

    async def soft_delete(self, db: Any, book_id: str) -> Book:
        book = self._row(book_id)
        book.is_deleted = True
        book.is_available = False
        return _copy(book)

    async def restore(self, db: Any, book_id: str) -> Book:
        book = self._row(book_id)
        book.is_deleted = False
        book.is_available = True
        return _copy(book)

    async def list_by_owner(
        self, db: Any, owner_id: str, *, include_deleted: bool = False
    ) -> list[Book]:
        return [
            _copy(b)
            for b in reversed(list(self._s.t.books.values()))
            if b.owner_id == owner_id and (include_deleted or not b.is_deleted)
        ]


class FakeExchangeRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def get_by_id(
        self, db: Any, exchange_id: str, *, for_update: bool = False
    ) -> Exchange | None:
        exchange = self._s.t.exchanges.get(exchange_id)
        return _copy(exchange) if exchange else None

    async def has_active_for_book(self, db: Any, book_id: str) -> bool:
        return any(
            e.book_id == book_id and e.status == ExchangeStatus.REQUESTED.value
            for e in self._s.t.exchanges.values()
        )

    async def insert(self, db: Any, exchange: Exchange) -> Exchange:
        # mirrors the partial unique index on (book_id) WHERE status = 'REQUESTED'
        if await self.has_active_for_book(db, exchange.book_id):
            raise ActiveExchangeExistsError(exchange.book_id)
        stored = dataclasses.replace(exchange, created_at=exchange.created_at or utc_now())
        self._s.t.exchanges[stored.id] = stored
        return _copy(stored)

    async def update_status(
        self,
        db: Any,
        exchange_id: str,
        status: str,
        *,
        completed_at: datetime | None = None,
    ) -> Exchange:
        exchange = self._s.t.exchanges.get(exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        exchange.status = status
        if completed_at is not None:
            exchange.completed_at = completed_at
        return _copy(exchange)

    async def delete(self, db: Any, exchange_id: str) -> None:
        if self._s.t.exchanges.pop(exchange_id, None) is None:
            raise ExchangeNotFoundError(exchange_id)

    async def exists_completed_since(
        self, db: Any, from_user_id: str, to_user_id: str, since: datetime
    ) -> bool:
        return any(
            e.from_user_id == from_user_id
            and e.to_user_id == to_user_id
            and e.status == ExchangeStatus.COMPLETED.value
            and e.completed_at is not None
            and e.completed_at >= since
            for e in self._s.t.exchanges.values()
        )

    async def list_for_user(self, db: Any, user_id: str) -> list[Exchange]:
        return [_copy(e) for e in self._s.t.exchanges.values() if e.is_participant(user_id)]

    async def list_pending_for_owner(self, db: Any, owner_id: str) -> list[Exchange]:
        return [
            _copy(e)
            for e in self._s.t.exchanges.values()
            if e.from_user_id == owner_id and e.status == ExchangeStatus.REQUESTED.value
        ]


class FakeReportRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def get_by_id(
        self, db: Any, report_id: str, *, for_update: bool = False
    ) -> Report | None:
        report = self._s.t.reports.get(report_id)
        return _copy(report) if report else None

    async def insert(self, db: Any, report: Report) -> Report:
        if await self.exists_for(db, report.exchange_id, report.reporter_id, report.reason):
            raise DuplicateReportError()
        stored = dataclasses.replace(report, created_at=report.created_at or utc_now())
        self._s.t.reports[stored.id] = stored
        return _copy(stored)

    async def update_status(self, db: Any, report_id: str, status: str) -> Report:
        report = self._s.t.reports.get(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        report.status = status
        return _copy(report)

    async def exists_for(
        self, db: Any, exchange_id: str, reporter_id: str, reason: str
    ) -> bool:
        return any(
            (r.exchange_id, r.reporter_id, r.reason) == (exchange_id, reporter_id, reason)
            for r in self._s.t.reports.values()
        )

    async def count_by_reporter_since(self, db: Any, reporter_id: str, since: datetime) -> int:
        return sum(
            1
            for r in self._s.t.reports.values()
            if r.reporter_id == reporter_id and r.created_at is not None and r.created_at >= since
        )

    async def count_unresolved_for_exchange(
        self, db: Any, exchange_id: str, *, exclude_report_id: str | None = None
    ) -> int:
        return sum(
            1
            for r in self._s.t.reports.values()
            if r.exchange_id == exchange_id
            and r.status in UNRESOLVED_STATUSES
            and r.id != exclude_report_id
        )

    async def list_by_exchange(self, db: Any, exchange_id: str) -> list[Report]:
        return [_copy(r) for r in self._s.t.reports.values() if r.exchange_id == exchange_id]

    async def list_by_reporter(self, db: Any, reporter_id: str) -> list[Report]:
        return [_copy(r) for r in self._s.t.reports.values() if r.reporter_id == reporter_id]

    async def list_all(self, db: Any, status: str | None) -> list[Report]:
        return [_copy(r) for r in self._s.t.reports.values() if status is None or r.status == status]


class FakeUserDirectory:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def is_admin(self, db: Any, user_id: str) -> bool:
        return user_id in self._s.t.admins


class FakeValuationRepository:
    def __init__(self, store: InMemoryStore) -> None:
        self._s = store

    async def get_signals(self, db: Any, book_id: str) -> ValuationSignals | None:
        book = self._s.t.books.get(book_id)
        if book is None:
            return None
        rarity = sum(
            1
            for b in self._s.t.books.values()
            if (b.title, b.author) == (book.title, book.author) and not b.is_deleted
        )
        return ValuationSignals(
            condition=book.condition,
            wishlist_count=self._s.t.wishlist.get(book_id, 0),
            rarity_count=rarity,
        )

    async def save_points(
        self, db: Any, book_id: str, points: int, calculated_at: datetime
    ) -> None:
        book = self._s.t.books[book_id]
        book.computed_points = points
        book.points_last_calculated_at = calculated_at


class InMemoryValuationCache:
    def __init__(self) -> None:
        self.values: dict[str, int] = {}

    async def get(self, book_id: str) -> int | None:
        return self.values.get(book_id)

    async def set(self, book_id: str, points: int) -> None:
        self.values[book_id] = points

    async def invalidate(self, book_id: str) -> None:
        self.values.pop(book_id, None)


@dataclass
class World:
    """Services wired to one InMemoryStore, plus handles the tests inspect."""

    store: InMemoryStore
    db: FakeSession
    cache: InMemoryValuationCache
    exchange_repo: FakeExchangeRepository
    valuation: BookValuationService
    exchanges: ExchangeService
    reports: ReportService
    books: BookService
