"""Admin report queue: list, resolve, reject."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.database import get_db_session
from src.bx_common.enums import ReportStatus
from src.bx_common.response import ApiResponse, success_response
from src.bx_gateway.auth.dependencies import require_admin
from src.bx_gateway.user.db_models import UserModel
from src.bx_report.application.service import ReportService

router = APIRouter(prefix="/admin", tags=["admin"])

_service = ReportService()


@router.get("/reports")
async def list_all_reports(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: ReportStatus | None = Query(None, description="Filter by report status"),
) -> ApiResponse:
    data = await _service.list_all_reports(
        db, str(admin.id), status.value if status else None
    )
    return success_response(data.model_dump(), request)


@router.post("/reports/{report_id}/resolve")
async def resolve_report(
    report_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.resolve_report(db, report_id, str(admin.id))
    return success_response(data.model_dump(), request)


@router.post("/reports/{report_id}/reject")
async def reject_report(
    report_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject_report(db, report_id, str(admin.id))
    return success_response(data.model_dump(), request)
