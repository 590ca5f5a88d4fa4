"""ReportRepository — concrete implementation of ReportRepositoryProtocol.

The unique constraint uq_reports_exchange_reporter_reason backs the
duplicate-report guard; a violation is reported as DuplicateReportError.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.errors import DuplicateReportError, ReportNotFoundError
from src.bx_report.domain.models import Report

_DUPLICATE_CONSTRAINT = "uq_reports_exchange_reporter_reason"

_REPORT_COLUMNS = """
    id, exchange_id, book_id, reporter_id, reason,
    description, status, created_at
"""

_GET_SQL = text(f"SELECT {_REPORT_COLUMNS} FROM reports WHERE id = :report_id")

_GET_FOR_UPDATE_SQL = text(
    f"SELECT {_REPORT_COLUMNS} FROM reports WHERE id = :report_id FOR UPDATE"
)

_INSERT_SQL = text(f"""
    INSERT INTO reports
        (id, exchange_id, book_id, reporter_id, reason, description, status)
    VALUES
        (:id, :exchange_id, :book_id, :reporter_id, :reason, :description, :status)
    RETURNING {_REPORT_COLUMNS}
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE reports SET status = :status
    WHERE id = :report_id
    RETURNING {_REPORT_COLUMNS}
""")

_EXISTS_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM reports
        WHERE exchange_id = :exchange_id
          AND reporter_id = :reporter_id
          AND reason = :reason
    )
""")

_COUNT_BY_REPORTER_SQL = text("""
    SELECT COUNT(*) FROM reports
    WHERE reporter_id = :reporter_id AND created_at >= :since
""")

_COUNT_UNRESOLVED_SQL = text("""
    SELECT COUNT(*) FROM reports
    WHERE exchange_id = :exchange_id
      AND status IN ('OPEN', 'UNDER_REVIEW')
      AND (CAST(:exclude_id AS TEXT) IS NULL OR id <> CAST(:exclude_id AS TEXT))
""")

_LIST_BY_EXCHANGE_SQL = text(f"""
    SELECT {_REPORT_COLUMNS} FROM reports
    WHERE exchange_id = :exchange_id
    ORDER BY created_at DESC, id DESC
""")

_LIST_BY_REPORTER_SQL = text(f"""
    SELECT {_REPORT_COLUMNS} FROM reports
    WHERE reporter_id = :reporter_id
    ORDER BY created_at DESC, id DESC
""")

_LIST_ALL_SQL = text(f"""
    SELECT {_REPORT_COLUMNS} FROM reports
    WHERE CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT)
    ORDER BY created_at DESC, id DESC
""")


def _row_to_report(row: object) -> Report:
    return Report(
        id=row.id,  # type: ignore[attr-defined]
        exchange_id=row.exchange_id,  # type: ignore[attr-defined]
        book_id=row.book_id,  # type: ignore[attr-defined]
        reporter_id=row.reporter_id,  # type: ignore[attr-defined]
        reason=row.reason,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class ReportRepository:
    async def get_by_id(
        self, db: AsyncSession, report_id: str, *, for_update: bool = False
    ) -> Report | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        row = (await db.execute(sql, {"report_id": report_id})).fetchone()
        return _row_to_report(row) if row else None

    async def insert(self, db: AsyncSession, report: Report) -> Report:
        try:
            row = (
                await db.execute(
                    _INSERT_SQL,
                    {
                        "id": report.id,
                        "exchange_id": report.exchange_id,
                        "book_id": report.book_id,
                        "reporter_id": report.reporter_id,
                        "reason": report.reason,
                        "description": report.description,
                        "status": report.status,
                    },
                )
            ).fetchone()
        except IntegrityError as exc:
            if _DUPLICATE_CONSTRAINT in str(exc.orig):
                raise DuplicateReportError() from exc
            raise
        return _row_to_report(row)

    async def update_status(self, db: AsyncSession, report_id: str, status: str) -> Report:
        row = (
            await db.execute(_UPDATE_STATUS_SQL, {"report_id": report_id, "status": status})
        ).fetchone()
        if row is None:
            raise ReportNotFoundError(report_id)
        return _row_to_report(row)

    async def exists_for(
        self, db: AsyncSession, exchange_id: str, reporter_id: str, reason: str
    ) -> bool:
        result = await db.execute(
            _EXISTS_SQL,
            {"exchange_id": exchange_id, "reporter_id": reporter_id, "reason": reason},
        )
        return bool(result.scalar_one())

    async def count_by_reporter_since(
        self, db: AsyncSession, reporter_id: str, since: datetime
    ) -> int:
        result = await db.execute(
            _COUNT_BY_REPORTER_SQL, {"reporter_id": reporter_id, "since": since}
        )
        return int(result.scalar_one())

    async def count_unresolved_for_exchange(
        self, db: AsyncSession, exchange_id: str, *, exclude_report_id: str | None = None
    ) -> int:
        result = await db.execute(
            _COUNT_UNRESOLVED_SQL,
            {"exchange_id": exchange_id, "exclude_id": exclude_report_id},
        )
        return int(result.scalar_one())

    async def list_by_exchange(self, db: AsyncSession, exchange_id: str) -> list[Report]:
        rows = (await db.execute(_LIST_BY_EXCHANGE_SQL, {"exchange_id": exchange_id})).fetchall()
        return [_row_to_report(r) for r in rows]

    async def list_by_reporter(self, db: AsyncSession, reporter_id: str) -> list[Report]:
        rows = (await db.execute(_LIST_BY_REPORTER_SQL, {"reporter_id": reporter_id})).fetchall()
        return [_row_to_report(r) for r in rows]

    async def list_all(self, db: AsyncSession, status: str | None) -> list[Report]:
        rows = (await db.execute(_LIST_ALL_SQL, {"status": status})).fetchall()
        return [_row_to_report(r) for r in rows]
