"""Shared async Redis client, created on first use.

Only the book valuation cache lives in Redis. Balances, ownership and
exchange state are PostgreSQL-only.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    client, _client = _client, None
    if client is not None:
        await client.aclose()
