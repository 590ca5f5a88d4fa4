"""UserDirectory — the is_admin(user_id) lookup consumed by report resolution.

Admin status is always read from the database, never trusted from the token.
"""

from typing import Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_IS_ADMIN_SQL = text("""
    SELECT is_admin FROM users
    WHERE CAST(id AS TEXT) = :user_id AND is_active
""")


class UserDirectoryProtocol(Protocol):
    async def is_admin(self, db: AsyncSession, user_id: str) -> bool: ...


class UserDirectory:
    async def is_admin(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(_IS_ADMIN_SQL, {"user_id": user_id})
        return bool(result.scalar_one_or_none())
