"""Circular-exchange guard.

A requester who recently gave a book to the current owner may not take one
straight back: the flagged pattern is a COMPLETED exchange requester -> owner
inside the repeat window.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bx_common.datetime_utils import window_start
from src.bx_common.errors import CircularExchangeError
from src.bx_exchange.domain.repository import ExchangeRepositoryProtocol


async def is_circular_exchange(
    exchanges: ExchangeRepositoryProtocol,
    db: AsyncSession,
    owner_id: str,
    requester_id: str,
) -> bool:
    since = window_start(days=settings.REPEAT_EXCHANGE_WINDOW_DAYS)
    # from_user_id is the giver (previous owner), to_user_id the receiver
    return await exchanges.exists_completed_since(db, requester_id, owner_id, since)


async def check_circular_exchange(
    exchanges: ExchangeRepositoryProtocol,
    db: AsyncSession,
    owner_id: str,
    requester_id: str,
) -> None:
    if await is_circular_exchange(exchanges, db, owner_id, requester_id):
        raise CircularExchangeError()
