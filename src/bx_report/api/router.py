"""bx_report REST API — member-facing reports and eligibility."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.database import get_db_session
from src.bx_common.response import ApiResponse, success_response
from src.bx_gateway.auth.dependencies import get_current_user
from src.bx_gateway.user.db_models import UserModel
from src.bx_report.application.schemas import CreateReportRequest
from src.bx_report.application.service import ReportService

router = APIRouter(tags=["reports"])

_service = ReportService()


@router.post("/reports", status_code=201)
async def create_report(
    body: CreateReportRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_report(
        db, body.exchange_id, str(current_user.id), body.reason, body.description
    )
    return success_response(data.model_dump(), request)


@router.get("/reports")
async def list_my_reports(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_user_reports(db, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("/reports/{report_id}")
async def get_report(
    report_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_report(db, report_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("/exchanges/{exchange_id}/reports")
async def list_exchange_reports(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_reports_for_exchange(db, exchange_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("/exchanges/{exchange_id}/report-eligibility")
async def report_eligibility(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.can_user_report(db, exchange_id, str(current_user.id))
    return success_response(data.model_dump(), request)
