"""ValuationRepository — reads valuation signals, persists computed points.

Rarity counts every listed copy with the same title and author, the book
itself included.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_valuation.domain.estimator import ValuationSignals

_SIGNALS_SQL = text("""
    SELECT b.condition,
           (SELECT COUNT(*) FROM wishlist_items w WHERE w.book_id = b.id) AS wishlist_count,
           (SELECT COUNT(*) FROM books c
             WHERE c.title = b.title AND c.author = b.author AND NOT c.is_deleted
           ) AS rarity_count
    FROM books b
    WHERE b.id = :book_id
""")

_SAVE_POINTS_SQL = text("""
    UPDATE books
    SET computed_points = :points,
        points_last_calculated_at = :calculated_at
    WHERE id = :book_id
""")


class ValuationRepository:
    async def get_signals(self, db: AsyncSession, book_id: str) -> ValuationSignals | None:
        row = (await db.execute(_SIGNALS_SQL, {"book_id": book_id})).fetchone()
        if row is None:
            return None
        return ValuationSignals(
            condition=row.condition,
            wishlist_count=int(row.wishlist_count),
            rarity_count=int(row.rarity_count),
        )

    async def save_points(
        self, db: AsyncSession, book_id: str, points: int, calculated_at: datetime
    ) -> None:
        await db.execute(
            _SAVE_POINTS_SQL,
            {"book_id": book_id, "points": points, "calculated_at": calculated_at},
        )
