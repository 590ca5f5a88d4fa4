"""Domain models for bx_exchange — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Exchange:
    id: str
    book_id: str
    from_user_id: str            # owner at request time
    to_user_id: str              # requester
    points_used: int             # valuation snapshot at request time, never recalculated
    status: str                  # ExchangeStatus value
    created_at: datetime | None = None
    completed_at: datetime | None = None

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.from_user_id, self.to_user_id)
