"""Repository Protocol for books.

owner_id changes only through transfer_ownership(), called from the
exchange approval transaction.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_book.domain.models import Book


class BookRepositoryProtocol(Protocol):
    async def get_by_id(
        self, db: AsyncSession, book_id: str, *, for_update: bool = False
    ) -> Book | None: ...

    async def transfer_ownership(
        self, db: AsyncSession, book_id: str, new_owner_id: str
    ) -> Book: ...

    async def set_availability(
        self, db: AsyncSession, book_id: str, is_available: bool
    ) -> Book: ...

    async def soft_delete(self, db: AsyncSession, book_id: str) -> Book: ...

    async def restore(self, db: AsyncSession, book_id: str) -> Book: ...

    async def list_by_owner(
        self, db: AsyncSession, owner_id: str, *, include_deleted: bool = False
    ) -> list[Book]: ...
