"""Pydantic schemas for bx_report API.

reason and description are validated by the service so the client gets the
report error codes (5003 / 5005) rather than a generic 422.
"""

from pydantic import BaseModel, Field

from src.bx_report.domain.models import Report


class CreateReportRequest(BaseModel):
    exchange_id: str = Field(..., min_length=1)
    reason: str
    description: str | None = None


class ReportResponse(BaseModel):
    id: str
    exchange_id: str
    book_id: str
    reporter_id: str
    reason: str
    description: str | None
    status: str
    created_at: str | None


class ReportListResponse(BaseModel):
    items: list[ReportResponse]


class ReportEligibilityResponse(BaseModel):
    can_report: bool
    reason: str | None = None


def report_to_response(report: Report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        exchange_id=report.exchange_id,
        book_id=report.book_id,
        reporter_id=report.reporter_id,
        reason=report.reason,
        description=report.description,
        status=report.status,
        created_at=report.created_at.isoformat() if report.created_at else None,
    )
