"""ExchangeRepository — concrete implementation of ExchangeRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) is required for values
that may be None.

The partial unique index uq_exchanges_book_requested (one REQUESTED row per
book) backs the in-transaction "no active exchange" re-check; a violation is
reported as ActiveExchangeExistsError.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.errors import ActiveExchangeExistsError, ExchangeNotFoundError
from src.bx_exchange.domain.models import Exchange

_ACTIVE_REQUEST_INDEX = "uq_exchanges_book_requested"

_EXCHANGE_COLUMNS = """
    id, book_id, from_user_id, to_user_id, points_used,
    status, created_at, completed_at
"""

_GET_SQL = text(f"SELECT {_EXCHANGE_COLUMNS} FROM exchanges WHERE id = :exchange_id")

_GET_FOR_UPDATE_SQL = text(
    f"SELECT {_EXCHANGE_COLUMNS} FROM exchanges WHERE id = :exchange_id FOR UPDATE"
)

_HAS_ACTIVE_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM exchanges
        WHERE book_id = :book_id AND status = 'REQUESTED'
    )
""")

_INSERT_SQL = text(f"""
    INSERT INTO exchanges
        (id, book_id, from_user_id, to_user_id, points_used, status)
    VALUES
        (:id, :book_id, :from_user_id, :to_user_id, :points_used, :status)
    RETURNING {_EXCHANGE_COLUMNS}
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE exchanges
    SET status = :status,
        completed_at = COALESCE(CAST(:completed_at AS TIMESTAMPTZ), completed_at)
    WHERE id = :exchange_id
    RETURNING {_EXCHANGE_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM exchanges WHERE id = :exchange_id RETURNING id")

_EXISTS_COMPLETED_SINCE_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM exchanges
        WHERE from_user_id = :from_user_id
          AND to_user_id = :to_user_id
          AND status = 'COMPLETED'
          AND completed_at >= :since
    )
""")

_LIST_FOR_USER_SQL = text(f"""
    SELECT {_EXCHANGE_COLUMNS}
    FROM exchanges
    WHERE from_user_id = :user_id OR to_user_id = :user_id
    ORDER BY created_at DESC, id DESC
""")

_LIST_PENDING_FOR_OWNER_SQL = text(f"""
    SELECT {_EXCHANGE_COLUMNS}
    FROM exchanges
    WHERE from_user_id = :owner_id AND status = 'REQUESTED'
    ORDER BY created_at DESC, id DESC
""")


def _row_to_exchange(row: object) -> Exchange:
    return Exchange(
        id=row.id,  # type: ignore[attr-defined]
        book_id=row.book_id,  # type: ignore[attr-defined]
        from_user_id=row.from_user_id,  # type: ignore[attr-defined]
        to_user_id=row.to_user_id,  # type: ignore[attr-defined]
        points_used=row.points_used,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        completed_at=row.completed_at,  # type: ignore[attr-defined]
    )


class ExchangeRepository:
    async def get_by_id(
        self, db: AsyncSession, exchange_id: str, *, for_update: bool = False
    ) -> Exchange | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"exchange_id": exchange_id})).fetchone()
        return _row_to_exchange(row) if row else None

    async def has_active_for_book(self, db: AsyncSession, book_id: str) -> bool:
        result = await db.execute(_HAS_ACTIVE_SQL, {"book_id": book_id})
        return bool(result.scalar_one())

    async def insert(self, db: AsyncSession, exchange: Exchange) -> Exchange:
        try:
            row = (
                await db.execute(
                    _INSERT_SQL,
                    {
                        "id": exchange.id,
                        "book_id": exchange.book_id,
                        "from_user_id": exchange.from_user_id,
                        "to_user_id": exchange.to_user_id,
                        "points_used": exchange.points_used,
                        "status": exchange.status,
                    },
                )
            ).fetchone()
        except IntegrityError as exc:
            if _ACTIVE_REQUEST_INDEX in str(exc.orig):
                raise ActiveExchangeExistsError(exchange.book_id) from exc
            raise
        return _row_to_exchange(row)

    async def update_status(
        self,
        db: AsyncSession,
        exchange_id: str,
        status: str,
        *,
        completed_at: datetime | None = None,
    ) -> Exchange:
        row = (
            await db.execute(
                _UPDATE_STATUS_SQL,
                {"exchange_id": exchange_id, "status": status, "completed_at": completed_at},
            )
        ).fetchone()
        if row is None:
            raise ExchangeNotFoundError(exchange_id)
        return _row_to_exchange(row)

    async def delete(self, db: AsyncSession, exchange_id: str) -> None:
        row = (await db.execute(_DELETE_SQL, {"exchange_id": exchange_id})).fetchone()
        if row is None:
            raise ExchangeNotFoundError(exchange_id)

    async def exists_completed_since(
        self, db: AsyncSession, from_user_id: str, to_user_id: str, since: datetime
    ) -> bool:
        result = await db.execute(
            _EXISTS_COMPLETED_SINCE_SQL,
            {"from_user_id": from_user_id, "to_user_id": to_user_id, "since": since},
        )
        return bool(result.scalar_one())

    async def list_for_user(self, db: AsyncSession, user_id: str) -> list[Exchange]:
        rows = (await db.execute(_LIST_FOR_USER_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_exchange(r) for r in rows]

    async def list_pending_for_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[Exchange]:
        rows = (
            await db.execute(_LIST_PENDING_FOR_OWNER_SQL, {"owner_id": owner_id})
        ).fetchall()
        return [_row_to_exchange(r) for r in rows]
