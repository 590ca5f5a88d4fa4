"""BookRepository — concrete implementation of BookRepositoryProtocol.

All queries use raw text() SQL. Writes run inside the caller's transaction.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_book.domain.models import Book
from src.bx_common.errors import BookNotFoundError

_BOOK_COLUMNS = """
    id, owner_id, title, author, condition,
    is_available, is_deleted,
    computed_points, points_last_calculated_at,
    created_at, updated_at
"""

_GET_BOOK_SQL = text(f"SELECT {_BOOK_COLUMNS} FROM books WHERE id = :book_id")

_GET_BOOK_FOR_UPDATE_SQL = text(
    f"SELECT {_BOOK_COLUMNS} FROM books WHERE id = :book_id FOR UPDATE"
)

# The new owner gets the book back as available so it can be listed again.
_TRANSFER_OWNERSHIP_SQL = text(f"""
    UPDATE books
    SET owner_id = :new_owner_id,
        is_available = TRUE,
        updated_at = NOW()
    WHERE id = :book_id
    RETURNING {_BOOK_COLUMNS}
""")

_SET_AVAILABILITY_SQL = text(f"""
    UPDATE books
    SET is_available = :is_available,
        updated_at = NOW()
    WHERE id = :book_id AND NOT is_deleted
    RETURNING {_BOOK_COLUMNS}
""")

_SOFT_DELETE_SQL = text(f"""
    UPDATE books
    SET is_deleted = TRUE,
        is_available = FALSE,
        updated_at = NOW()
    WHERE id = :book_id
    RETURNING {_BOOK_COLUMNS}
""")

_RESTORE_SQL = text(f"""
    UPDATE books
    SET is_deleted = FALSE,
        is_available = TRUE,
        updated_at = NOW()
    WHERE id = :book_id
    RETURNING {_BOOK_COLUMNS}
""")

_LIST_BY_OWNER_SQL = text(f"""
    SELECT {_BOOK_COLUMNS} FROM books
    WHERE owner_id = :owner_id
      AND (CAST(:include_deleted AS BOOLEAN) OR NOT is_deleted)
    ORDER BY created_at DESC, id DESC
""")


def _row_to_book(row: object) -> Book:
    return Book(
        id=row.id,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        author=row.author,  # type: ignore[attr-defined]
        condition=row.condition,  # type: ignore[attr-defined]
        is_available=row.is_available,  # type: ignore[attr-defined]
        is_deleted=row.is_deleted,  # type: ignore[attr-defined]
        computed_points=row.computed_points,  # type: ignore[attr-defined]
        points_last_calculated_at=row.points_last_calculated_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class BookRepository:
    async def get_by_id(
        self, db: AsyncSession, book_id: str, *, for_update: bool = False
    ) -> Book | None:
        sql = _GET_BOOK_FOR_UPDATE_SQL if for_update else _GET_BOOK_SQL
        row = (await db.execute(sql, {"book_id": book_id})).fetchone()
        return _row_to_book(row) if row else None

    async def transfer_ownership(
        self, db: AsyncSession, book_id: str, new_owner_id: str
    ) -> Book:
        row = (
            await db.execute(
                _TRANSFER_OWNERSHIP_SQL,
                {"book_id": book_id, "new_owner_id": new_owner_id},
            )
        ).fetchone()
        if row is None:
            raise BookNotFoundError(book_id)
        return _row_to_book(row)

    async def set_availability(
        self, db: AsyncSession, book_id: str, is_available: bool
    ) -> Book:
        row = (
            await db.execute(
                _SET_AVAILABILITY_SQL,
                {"book_id": book_id, "is_available": is_available},
            )
        ).fetchone()
        if row is None:
            raise BookNotFoundError(book_id)
        return _row_to_book(row)

    async def soft_delete(self, db: AsyncSession, book_id: str) -> Book:
        row = (await db.execute(_SOFT_DELETE_SQL, {"book_id": book_id})).fetchone()
        if row is None:
            raise BookNotFoundError(book_id)
        return _row_to_book(row)

    async def restore(self, db: AsyncSession, book_id: str) -> Book:
        row = (await db.execute(_RESTORE_SQL, {"book_id": book_id})).fetchone()
        if row is None:
            raise BookNotFoundError(book_id)
        return _row_to_book(row)

    async def list_by_owner(
        self, db: AsyncSession, owner_id: str, *, include_deleted: bool = False
    ) -> list[Book]:
        rows = (
            await db.execute(
                _LIST_BY_OWNER_SQL,
                {"owner_id": owner_id, "include_deleted": include_deleted},
            )
        ).fetchall()
        return [_row_to_book(r) for r in rows]
