"""Domain models for bx_report — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.bx_common.enums import ReportStatus

# Reports an admin has not decided yet. Either one keeps the exchange frozen:
# an UNDER_REVIEW report blocks the restore on rejection just like an OPEN one,
# even though only OPEN reports are ever created today.
UNRESOLVED_STATUSES: frozenset[str] = frozenset(
    {ReportStatus.OPEN.value, ReportStatus.UNDER_REVIEW.value}
)


@dataclass
class Report:
    id: str
    exchange_id: str
    book_id: str
    reporter_id: str
    reason: str                  # ReportReason value
    description: str | None
    status: str                  # ReportStatus value
    created_at: datetime | None = None

    @property
    def is_unresolved(self) -> bool:
        return self.status in UNRESOLVED_STATUSES
