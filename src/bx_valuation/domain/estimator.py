"""Point estimators: signals in, integer point value in [MIN_POINTS, MAX_POINTS] out.

HeuristicPointEstimator is deterministic and always available. Any other
estimator (e.g. a model-backed one) is wrapped in FallbackPointEstimator so
the exchange engine only ever sees an int or an exception.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from src.bx_common.enums import BookCondition

logger = logging.getLogger(__name__)

MIN_POINTS = 5
MAX_POINTS = 20

BASE_POINTS = Decimal(10)

CONDITION_MULTIPLIERS: dict[str, Decimal] = {
    BookCondition.POOR.value: Decimal("0.5"),
    BookCondition.FAIR.value: Decimal("0.7"),
    BookCondition.GOOD.value: Decimal("1.0"),
    BookCondition.EXCELLENT.value: Decimal("1.5"),
}

WISHLIST_PER_POINT = 3
MAX_WISHLIST_BONUS = 3


@dataclass(frozen=True)
class ValuationSignals:
    condition: str          # BookCondition value
    wishlist_count: int     # members who wishlisted this book
    rarity_count: int       # listed copies sharing title + author (this one included)


class PointEstimator(Protocol):
    async def estimate(self, signals: ValuationSignals) -> int: ...


def clamp_points(value: int) -> int:
    return max(MIN_POINTS, min(MAX_POINTS, value))


def _rarity_bonus(rarity_count: int) -> Decimal:
    if rarity_count == 1:
        return Decimal(1)
    if 2 <= rarity_count <= 3:
        return Decimal("0.5")
    return Decimal(0)


class HeuristicPointEstimator:
    """base x condition + wishlist demand + rarity, half-up rounded and clamped."""

    async def estimate(self, signals: ValuationSignals) -> int:
        multiplier = CONDITION_MULTIPLIERS.get(signals.condition, Decimal("1.0"))
        points = BASE_POINTS * multiplier
        points += min(signals.wishlist_count // WISHLIST_PER_POINT, MAX_WISHLIST_BONUS)
        points += _rarity_bonus(signals.rarity_count)
        return clamp_points(int(points.quantize(Decimal(1), rounding=ROUND_HALF_UP)))


class FallbackPointEstimator:
    """Run `primary` under a timeout; on any failure use `fallback`."""

    def __init__(
        self,
        primary: PointEstimator,
        fallback: PointEstimator | None = None,
        timeout: float = 5.0,
    ) -> None:
        self._primary = primary
        self._fallback: PointEstimator = fallback or HeuristicPointEstimator()
        self._timeout = timeout

    async def estimate(self, signals: ValuationSignals) -> int:
        try:
            value = await asyncio.wait_for(self._primary.estimate(signals), self._timeout)
        except Exception as exc:  # any estimator failure degrades to the fallback
            logger.warning("Primary estimator failed (%s), using fallback", exc.__class__.__name__)
            value = await self._fallback.estimate(signals)
        return clamp_points(int(value))
