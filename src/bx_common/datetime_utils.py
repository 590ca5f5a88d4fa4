"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def window_start(*, days: int = 0, hours: int = 0) -> datetime:
    """Start of a trailing window ending now, e.g. window_start(days=7)."""
    return utc_now() - timedelta(days=days, hours=hours)
