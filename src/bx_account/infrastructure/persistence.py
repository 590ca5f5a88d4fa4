"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Balance mutation uses atomic PostgreSQL UPDATE ... RETURNING guarded by
`point_balance >= :amount`; the accounts CHECK (point_balance >= 0) is the
last line of defence. A result of 0 rows on the debit means the payer's
balance changed since it was read.

Transaction ownership: the CALLER (exchange service) opens and commits the
transaction; transfer() must run inside it, together with the ownership
change and the exchange status update.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_account.domain.models import Account, LedgerEntry
from src.bx_common.enums import LedgerEntryType
from src.bx_common.errors import AccountNotFoundError, InsufficientPointsError, InternalError

_ACCOUNT_COLUMNS = "id, user_id, point_balance, version, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id = :user_id
""")

# Both rows locked in user_id order so concurrent transfers between the
# same two accounts (in either direction) cannot deadlock.
_LOCK_PAIR_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE user_id IN (:user_a, :user_b)
    ORDER BY user_id
    FOR UPDATE
""")

_DEBIT_SQL = text(f"""
    UPDATE accounts
    SET point_balance = point_balance - :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id AND point_balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

_CREDIT_SQL = text(f"""
    UPDATE accounts
    SET point_balance = point_balance + :amount,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         'EXCHANGE', :reference_id, :description)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        point_balance=row.point_balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    """Concrete repository — all balance writes atomic at the SQL level."""

    async def get_account_by_user_id(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def transfer(
        self,
        db: AsyncSession,
        from_user_id: str,
        to_user_id: str,
        amount: int,
        exchange_id: str,
    ) -> tuple[Account, Account]:
        """Move `amount` points from payer to payee and write both ledger rows.

        Returns (payer, payee) after the transfer.
        """
        if amount <= 0 or from_user_id == to_user_id:
            raise InternalError(f"Invalid transfer: {from_user_id} -> {to_user_id} ({amount})")

        locked = (
            await db.execute(_LOCK_PAIR_SQL, {"user_a": from_user_id, "user_b": to_user_id})
        ).fetchall()
        by_user = {row.user_id: row for row in locked}
        for user_id in (from_user_id, to_user_id):
            if user_id not in by_user:
                raise AccountNotFoundError(user_id)
        available = by_user[from_user_id].point_balance
        if available < amount:
            raise InsufficientPointsError(amount, available)

        debit_row = (
            await db.execute(_DEBIT_SQL, {"user_id": from_user_id, "amount": amount})
        ).fetchone()
        if debit_row is None:
            raise InsufficientPointsError(amount, available)
        credit_row = (
            await db.execute(_CREDIT_SQL, {"user_id": to_user_id, "amount": amount})
        ).fetchone()
        if credit_row is None:
            raise AccountNotFoundError(to_user_id)

        payer = _row_to_account(debit_row)
        payee = _row_to_account(credit_row)
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": from_user_id,
                "entry_type": LedgerEntryType.EXCHANGE_DEBIT.value,
                "amount": -amount,
                "balance_after": payer.point_balance,
                "reference_id": exchange_id,
                "description": "Points paid for exchanged book",
            },
        )
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": to_user_id,
                "entry_type": LedgerEntryType.EXCHANGE_CREDIT.value,
                "amount": amount,
                "balance_after": payee.point_balance,
                "reference_id": exchange_id,
                "description": "Points earned for sharing a book",
            },
        )
        return payer, payee

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {"user_id": user_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
