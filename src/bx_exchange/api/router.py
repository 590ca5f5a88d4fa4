"""bx_exchange REST API — request, decide, cancel and list exchanges."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_common.database import get_db_session
from src.bx_common.response import ApiResponse, success_response
from src.bx_exchange.application.schemas import CancelExchangeResponse, CreateExchangeRequest
from src.bx_exchange.application.service import ExchangeService
from src.bx_gateway.auth.dependencies import get_current_user
from src.bx_gateway.user.db_models import UserModel

router = APIRouter(prefix="/exchanges", tags=["exchanges"])

_service = ExchangeService()


@router.post("", status_code=201)
async def request_exchange(
    body: CreateExchangeRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.request_exchange(db, body.book_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("")
async def list_exchanges(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_user_exchanges(db, str(current_user.id))
    return success_response(data.model_dump(), request)


# Registered before /{exchange_id} so "pending" is not captured as an id
@router.get("/pending")
async def list_pending_requests(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_pending_requests(db, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.get("/{exchange_id}")
async def get_exchange(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_exchange(db, exchange_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.post("/{exchange_id}/approve")
async def approve_exchange(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.approve_exchange(db, exchange_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.post("/{exchange_id}/reject")
async def reject_exchange(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reject_exchange(db, exchange_id, str(current_user.id))
    return success_response(data.model_dump(), request)


@router.delete("/{exchange_id}")
async def cancel_exchange(
    exchange_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.cancel_exchange(db, exchange_id, str(current_user.id))
    return success_response(CancelExchangeResponse(exchange_id=exchange_id).model_dump(), request)
