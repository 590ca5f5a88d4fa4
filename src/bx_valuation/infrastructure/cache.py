"""Redis-backed ValuationCache: one string key per book, SET ... EX ttl.

A Redis outage degrades to a cache miss; the persisted column on books is
the durable copy.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.bx_common.redis_client import get_redis

logger = logging.getLogger(__name__)

_KEY_PREFIX = "bx:book_points:"


def _key(book_id: str) -> str:
    return f"{_KEY_PREFIX}{book_id}"


class RedisValuationCache:
    def __init__(self, ttl_seconds: int, redis: aioredis.Redis | None = None) -> None:
        self._ttl = ttl_seconds
        self._redis = redis

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def get(self, book_id: str) -> int | None:
        try:
            raw = await (await self._client()).get(_key(book_id))
        except RedisError as exc:
            logger.warning("Valuation cache read failed for %s: %s", book_id, exc)
            return None
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    async def set(self, book_id: str, points: int) -> None:
        try:
            await (await self._client()).set(_key(book_id), str(points), ex=self._ttl)
        except RedisError as exc:
            logger.warning("Valuation cache write failed for %s: %s", book_id, exc)

    async def invalidate(self, book_id: str) -> None:
        try:
            await (await self._client()).delete(_key(book_id))
        except RedisError as exc:
            logger.warning("Valuation cache invalidate failed for %s: %s", book_id, exc)
