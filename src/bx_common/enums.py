"""Global enums — must match DB CHECK constraints exactly.

Ref: alembic/versions/004..007
"""

from enum import Enum


class BookCondition(str, Enum):
    POOR = "POOR"
    FAIR = "FAIR"
    GOOD = "GOOD"
    EXCELLENT = "EXCELLENT"


class ExchangeStatus(str, Enum):
    """Persisted exchange states. Cancelled requests are deleted, not stored."""
    REQUESTED = "REQUESTED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    DISPUTED = "DISPUTED"


class ReportReason(str, Enum):
    CONDITION_MISMATCH = "CONDITION_MISMATCH"
    DAMAGED_BOOK = "DAMAGED_BOOK"
    WRONG_BOOK = "WRONG_BOOK"
    MISSING_PAGES = "MISSING_PAGES"
    FAKE_LISTING = "FAKE_LISTING"
    OTHER = "OTHER"


class ReportStatus(str, Enum):
    OPEN = "OPEN"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"


class LedgerEntryType(str, Enum):
    # Approval transfer (payer / payee sides)
    EXCHANGE_DEBIT = "EXCHANGE_DEBIT"
    EXCHANGE_CREDIT = "EXCHANGE_CREDIT"
