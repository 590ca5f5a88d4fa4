"""Cache seam for computed book points. TTL is owned by the implementation."""

from typing import Protocol


class ValuationCache(Protocol):
    async def get(self, book_id: str) -> int | None: ...

    async def set(self, book_id: str, points: int) -> None: ...

    async def invalidate(self, book_id: str) -> None: ...
