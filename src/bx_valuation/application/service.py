"""BookValuationService — get_book_points(book_id) -> int in [5, 20].

Lookup order: cache -> book.computed_points (if calculated within the cache
TTL) -> fresh estimate from signals, persisted on the book row and cached.
The value returned at request time is snapshotted into exchanges.points_used
and never recalculated for that exchange.
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bx_book.domain.models import Book
from src.bx_book.domain.repository import BookRepositoryProtocol
from src.bx_book.infrastructure.persistence import BookRepository
from src.bx_common.datetime_utils import utc_now
from src.bx_common.errors import BookNotFoundError
from src.bx_common.transaction import run_in_transaction
from src.bx_valuation.domain.cache import ValuationCache
from src.bx_valuation.domain.estimator import (
    FallbackPointEstimator,
    HeuristicPointEstimator,
    PointEstimator,
)
from src.bx_valuation.domain.repository import ValuationRepositoryProtocol
from src.bx_valuation.infrastructure.cache import RedisValuationCache
from src.bx_valuation.infrastructure.persistence import ValuationRepository

logger = logging.getLogger(__name__)


class BookValuationService:
    def __init__(
        self,
        book_repo: BookRepositoryProtocol | None = None,
        valuation_repo: ValuationRepositoryProtocol | None = None,
        cache: ValuationCache | None = None,
        estimator: PointEstimator | None = None,
    ) -> None:
        self._books: BookRepositoryProtocol = book_repo or BookRepository()
        self._valuations: ValuationRepositoryProtocol = valuation_repo or ValuationRepository()
        self._cache: ValuationCache = cache or RedisValuationCache(
            settings.VALUATION_CACHE_TTL_SECONDS
        )
        self._estimator: PointEstimator = estimator or FallbackPointEstimator(
            HeuristicPointEstimator(), timeout=settings.VALUATION_TIMEOUT_SECONDS
        )

    async def _get_book(self, db: AsyncSession, book_id: str) -> Book:
        book = await self._books.get_by_id(db, book_id)
        if book is None or book.is_deleted:
            raise BookNotFoundError(book_id)
        return book

    async def get_book_points(self, db: AsyncSession, book_id: str) -> int:
        cached = await self._cache.get(book_id)
        if cached is not None:
            return cached

        book = await self._get_book(db, book_id)
        fresh_for = timedelta(seconds=settings.VALUATION_CACHE_TTL_SECONDS)
        if book.computed_points is not None and not _older_than(book, fresh_for):
            await self._cache.set(book_id, book.computed_points)
            return book.computed_points

        return await self._recalculate(db, book_id)

    async def refresh_if_stale(self, db: AsyncSession, book_id: str) -> int:
        """Recalculate when never computed or older than VALUATION_STALE_AFTER_DAYS."""
        book = await self._get_book(db, book_id)
        stale_after = timedelta(days=settings.VALUATION_STALE_AFTER_DAYS)
        if book.computed_points is not None and not _older_than(book, stale_after):
            return book.computed_points
        return await self._recalculate(db, book_id)

    async def invalidate(self, book_id: str) -> None:
        await self._cache.invalidate(book_id)

    async def _recalculate(self, db: AsyncSession, book_id: str) -> int:
        signals = await self._valuations.get_signals(db, book_id)
        if signals is None:
            raise BookNotFoundError(book_id)
        points = await self._estimator.estimate(signals)

        async def work() -> None:
            await self._valuations.save_points(db, book_id, points, utc_now())

        await run_in_transaction(db, work, label="save book points")
        await self._cache.set(book_id, points)
        logger.info("Book %s valued at %d points", book_id, points)
        return points


def _older_than(book: Book, age: timedelta) -> bool:
    if book.points_last_calculated_at is None:
        return True
    return utc_now() - book.points_last_calculated_at > age
