"""Repeat-exchange guard: the same two members completed an exchange recently.

Checked in both directions over REPEAT_EXCHANGE_WINDOW_DAYS.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bx_common.datetime_utils import window_start
from src.bx_common.errors import RepeatExchangeError
from src.bx_exchange.domain.repository import ExchangeRepositoryProtocol


async def is_repeat_exchange(
    exchanges: ExchangeRepositoryProtocol,
    db: AsyncSession,
    owner_id: str,
    requester_id: str,
) -> bool:
    since = window_start(days=settings.REPEAT_EXCHANGE_WINDOW_DAYS)
    if await exchanges.exists_completed_since(db, owner_id, requester_id, since):
        return True
    return await exchanges.exists_completed_since(db, requester_id, owner_id, since)


async def check_repeat_exchange(
    exchanges: ExchangeRepositoryProtocol,
    db: AsyncSession,
    owner_id: str,
    requester_id: str,
) -> None:
    if await is_repeat_exchange(exchanges, db, owner_id, requester_id):
        raise RepeatExchangeError(settings.REPEAT_EXCHANGE_WINDOW_DAYS)
