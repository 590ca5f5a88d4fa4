"""BookService — owner-side operations on a listed book.

Ownership itself only moves in the exchange approval transaction; this
service toggles availability, soft-deletes and restores, and lists an
owner's shelf.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_book.application.schemas import BookListResponse, BookResponse, book_to_response
from src.bx_book.domain.models import Book
from src.bx_book.domain.repository import BookRepositoryProtocol
from src.bx_book.infrastructure.persistence import BookRepository
from src.bx_common.errors import ActiveExchangeExistsError, BookNotFoundError, NotOwnerError
from src.bx_common.transaction import run_in_transaction
from src.bx_exchange.domain.repository import ExchangeRepositoryProtocol
from src.bx_exchange.infrastructure.persistence import ExchangeRepository

logger = logging.getLogger(__name__)


class BookService:
    def __init__(
        self,
        book_repo: BookRepositoryProtocol | None = None,
        exchange_repo: ExchangeRepositoryProtocol | None = None,
    ) -> None:
        self._books: BookRepositoryProtocol = book_repo or BookRepository()
        self._exchanges: ExchangeRepositoryProtocol = exchange_repo or ExchangeRepository()

    async def get_book(self, db: AsyncSession, book_id: str) -> BookResponse:
        book = await self._books.get_by_id(db, book_id)
        if book is None or book.is_deleted:
            raise BookNotFoundError(book_id)
        return book_to_response(book)

    async def _lock_owned(self, db: AsyncSession, book_id: str, owner_id: str) -> Book:
        book = await self._books.get_by_id(db, book_id, for_update=True)
        if book is None or book.is_deleted:
            raise BookNotFoundError(book_id)
        if book.owner_id != owner_id:
            raise NotOwnerError()
        return book

    async def set_availability(
        self, db: AsyncSession, book_id: str, owner_id: str, is_available: bool
    ) -> BookResponse:
        """Refused while a REQUESTED exchange exists on the book."""

        async def work() -> Book:
            await self._lock_owned(db, book_id, owner_id)
            if await self._exchanges.has_active_for_book(db, book_id):
                raise ActiveExchangeExistsError(book_id)
            return await self._books.set_availability(db, book_id, is_available)

        book = await run_in_transaction(db, work, label="set book availability")
        logger.info("Book %s availability set to %s by %s", book_id, is_available, owner_id)
        return book_to_response(book)

    async def delete_book(self, db: AsyncSession, book_id: str, owner_id: str) -> None:
        """Soft delete; exchange history keeps pointing at the row."""

        async def work() -> None:
            await self._lock_owned(db, book_id, owner_id)
            await self._books.soft_delete(db, book_id)

        await run_in_transaction(db, work, label="delete book")
        logger.info("Book %s deleted by %s", book_id, owner_id)

    async def restore_book(self, db: AsyncSession, book_id: str, owner_id: str) -> BookResponse:
        """Undo a soft delete. Restoring a book that is not deleted is a no-op."""

        async def work() -> Book:
            book = await self._books.get_by_id(db, book_id, for_update=True)
            if book is None:
                raise BookNotFoundError(book_id)
            if book.owner_id != owner_id:
                raise NotOwnerError()
            if not book.is_deleted:
                return book
            return await self._books.restore(db, book_id)

        book = await run_in_transaction(db, work, label="restore book")
        logger.info("Book %s restored by %s", book_id, owner_id)
        return book_to_response(book)

    async def list_user_books(
        self, db: AsyncSession, owner_id: str, include_deleted: bool = False
    ) -> BookListResponse:
        books = await self._books.list_by_owner(db, owner_id, include_deleted=include_deleted)
        return BookListResponse(items=[book_to_response(b) for b in books])
