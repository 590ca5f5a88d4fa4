"""Domain models for bx_book — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Book:
    id: str                      # permanent public identity (QR / history)
    owner_id: str
    title: str
    author: str
    condition: str               # BookCondition value
    is_available: bool = True
    is_deleted: bool = False
    computed_points: int | None = None
    points_last_calculated_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_listed(self) -> bool:
        """Visible and requestable: not soft-deleted and marked available."""
        return self.is_available and not self.is_deleted
