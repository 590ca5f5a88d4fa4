"""ExchangeService — request / approve / reject / cancel.

Every write follows two phases:

  1. validate: read-only checks (ownership, availability, valuation,
     balance, anti-abuse rules). Cheap rejections, no locks held.
  2. run_in_transaction: lock rows in the global order
     exchange -> book -> accounts (ascending user_id), re-check what can
     have changed since phase 1, then write.

Approval is the only place points and ownership move, and they move
together: transfer + transfer_ownership + COMPLETED commit or roll back as
one unit.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_account.domain.repository import AccountRepositoryProtocol
from src.bx_account.infrastructure.persistence import AccountRepository
from src.bx_book.domain.models import Book
from src.bx_book.domain.repository import BookRepositoryProtocol
from src.bx_book.infrastructure.persistence import BookRepository
from src.bx_common.datetime_utils import utc_now
from src.bx_common.enums import ExchangeStatus
from src.bx_common.errors import (
    AccountNotFoundError,
    ActiveExchangeExistsError,
    BookNotAvailableError,
    BookNotFoundError,
    ExchangeNotFoundError,
    InsufficientPointsError,
    OwnBookRequestError,
    UnauthorizedError,
)
from src.bx_common.transaction import run_in_transaction
from src.bx_exchange.application.schemas import (
    ExchangeListResponse,
    ExchangeResponse,
    exchange_to_response,
)
from src.bx_exchange.domain.models import Exchange
from src.bx_exchange.domain.repository import ExchangeRepositoryProtocol
from src.bx_exchange.domain.state_machine import ExchangeEvent, next_status
from src.bx_exchange.infrastructure.persistence import ExchangeRepository
from src.bx_risk.rules.circular_exchange import check_circular_exchange
from src.bx_risk.rules.repeat_exchange import check_repeat_exchange
from src.bx_valuation.application.service import BookValuationService

logger = logging.getLogger(__name__)


class ExchangeService:
    def __init__(
        self,
        exchange_repo: ExchangeRepositoryProtocol | None = None,
        book_repo: BookRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        valuation: BookValuationService | None = None,
    ) -> None:
        self._exchanges: ExchangeRepositoryProtocol = exchange_repo or ExchangeRepository()
        self._books: BookRepositoryProtocol = book_repo or BookRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._valuation = valuation or BookValuationService(book_repo=self._books)

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    async def request_exchange(
        self, db: AsyncSession, book_id: str, requester_id: str
    ) -> ExchangeResponse:
        book = _requestable(await self._books.get_by_id(db, book_id), book_id, requester_id)
        owner_id = book.owner_id
        if await self._exchanges.has_active_for_book(db, book_id):
            raise ActiveExchangeExistsError(book_id)

        points = await self._valuation.get_book_points(db, book_id)
        account = await self._accounts.get_account_by_user_id(db, requester_id)
        if account is None:
            raise AccountNotFoundError(requester_id)
        if account.point_balance < points:
            raise InsufficientPointsError(points, account.point_balance)

        # Circular first: a requester -> owner exchange also matches the
        # two-way repeat window, and the circular diagnosis is the precise one.
        await check_circular_exchange(self._exchanges, db, owner_id, requester_id)
        await check_repeat_exchange(self._exchanges, db, owner_id, requester_id)

        async def work() -> Exchange:
            locked = _requestable(
                await self._books.get_by_id(db, book_id, for_update=True), book_id, requester_id
            )
            if locked.owner_id != owner_id:
                raise BookNotAvailableError(book_id)
            if await self._exchanges.has_active_for_book(db, book_id):
                raise ActiveExchangeExistsError(book_id)
            return await self._exchanges.insert(
                db,
                Exchange(
                    id=str(uuid.uuid4()),
                    book_id=book_id,
                    from_user_id=owner_id,
                    to_user_id=requester_id,
                    points_used=points,
                    status=ExchangeStatus.REQUESTED.value,
                ),
            )

        exchange = await run_in_transaction(db, work, label="request exchange")
        logger.info(
            "Exchange %s requested: book %s, %s -> %s, %d points",
            exchange.id, book_id, owner_id, requester_id, points,
        )
        return exchange_to_response(exchange)

    # ------------------------------------------------------------------
    # Owner decisions
    # ------------------------------------------------------------------

    async def approve_exchange(
        self, db: AsyncSession, exchange_id: str, owner_id: str
    ) -> ExchangeResponse:
        current = await self._get_for_owner(db, exchange_id, owner_id)
        next_status(current.status, ExchangeEvent.APPROVE)

        async def work() -> Exchange:
            exchange = await self._lock(db, exchange_id)
            target = next_status(exchange.status, ExchangeEvent.APPROVE)
            assert target is not None
            book = await self._books.get_by_id(db, exchange.book_id, for_update=True)
            if book is None or not book.is_listed or book.owner_id != exchange.from_user_id:
                raise BookNotAvailableError(exchange.book_id)
            await self._accounts.transfer(
                db,
                from_user_id=exchange.to_user_id,
                to_user_id=exchange.from_user_id,
                amount=exchange.points_used,
                exchange_id=exchange.id,
            )
            await self._books.transfer_ownership(db, exchange.book_id, exchange.to_user_id)
            return await self._exchanges.update_status(
                db, exchange.id, target.value, completed_at=utc_now()
            )

        exchange = await run_in_transaction(db, work, label="approve exchange")
        logger.info(
            "Exchange %s completed: book %s now owned by %s, %d points paid",
            exchange.id, exchange.book_id, exchange.to_user_id, exchange.points_used,
        )
        return exchange_to_response(exchange)

    async def reject_exchange(
        self, db: AsyncSession, exchange_id: str, owner_id: str
    ) -> ExchangeResponse:
        current = await self._get_for_owner(db, exchange_id, owner_id)
        next_status(current.status, ExchangeEvent.REJECT)

        async def work() -> Exchange:
            exchange = await self._lock(db, exchange_id)
            target = next_status(exchange.status, ExchangeEvent.REJECT)
            assert target is not None
            return await self._exchanges.update_status(db, exchange.id, target.value)

        exchange = await run_in_transaction(db, work, label="reject exchange")
        logger.info("Exchange %s rejected by %s", exchange.id, owner_id)
        return exchange_to_response(exchange)

    # ------------------------------------------------------------------
    # Requester
    # ------------------------------------------------------------------

    async def cancel_exchange(
        self, db: AsyncSession, exchange_id: str, requester_id: str
    ) -> None:
        current = await self._exchanges.get_by_id(db, exchange_id)
        if current is None:
            raise ExchangeNotFoundError(exchange_id)
        if current.to_user_id != requester_id:
            raise UnauthorizedError("Only the requester can cancel this exchange")
        next_status(current.status, ExchangeEvent.CANCEL)

        async def work() -> None:
            exchange = await self._lock(db, exchange_id)
            next_status(exchange.status, ExchangeEvent.CANCEL)
            await self._exchanges.delete(db, exchange.id)

        await run_in_transaction(db, work, label="cancel exchange")
        logger.info("Exchange %s cancelled by %s", exchange_id, requester_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_exchange(
        self, db: AsyncSession, exchange_id: str, user_id: str
    ) -> ExchangeResponse:
        exchange = await self._exchanges.get_by_id(db, exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        if not exchange.is_participant(user_id):
            raise UnauthorizedError("You are not a participant in this exchange")
        return exchange_to_response(exchange)

    async def list_user_exchanges(self, db: AsyncSession, user_id: str) -> ExchangeListResponse:
        exchanges = await self._exchanges.list_for_user(db, user_id)
        return ExchangeListResponse(items=[exchange_to_response(e) for e in exchanges])

    async def list_pending_requests(self, db: AsyncSession, owner_id: str) -> ExchangeListResponse:
        exchanges = await self._exchanges.list_pending_for_owner(db, owner_id)
        return ExchangeListResponse(items=[exchange_to_response(e) for e in exchanges])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_for_owner(
        self, db: AsyncSession, exchange_id: str, owner_id: str
    ) -> Exchange:
        exchange = await self._exchanges.get_by_id(db, exchange_id)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        if exchange.from_user_id != owner_id:
            raise UnauthorizedError("Only the book owner can decide on this exchange")
        return exchange

    async def _lock(self, db: AsyncSession, exchange_id: str) -> Exchange:
        exchange = await self._exchanges.get_by_id(db, exchange_id, for_update=True)
        if exchange is None:
            raise ExchangeNotFoundError(exchange_id)
        return exchange


def _requestable(book: Book | None, book_id: str, requester_id: str) -> Book:
    if book is None or book.is_deleted:
        raise BookNotFoundError(book_id)
    if book.owner_id == requester_id:
        raise OwnBookRequestError()
    if not book.is_available:
        raise BookNotAvailableError(book_id)
    return book
