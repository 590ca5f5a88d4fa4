"""Pydantic schemas for bx_account API, plus the ledger page cursor."""

import base64
import binascii

from pydantic import BaseModel

from src.bx_account.domain.models import LedgerEntry


def cursor_encode(last_id: int) -> str:
    """Opaque cursor for the ledger id the next page must start below."""
    return base64.urlsafe_b64encode(f"ledger:{last_id}".encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Inverse of cursor_encode. A malformed cursor reads as "first page"."""
    if not cursor:
        return None
    try:
        prefix, _, raw_id = base64.urlsafe_b64decode(cursor.encode()).decode().partition(":")
        return int(raw_id) if prefix == "ledger" else None
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


class BalanceResponse(BaseModel):
    user_id: str
    point_balance: int


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str | None

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            balance_after=entry.balance_after,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else None,
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
