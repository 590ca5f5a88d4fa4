"""bx_book REST API — owner shelf, detail, points, availability, delete and restore."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bx_book.application.schemas import BookPointsResponse, SetAvailabilityRequest
from src.bx_book.application.service import BookService
from src.bx_common.database import get_db_session
from src.bx_common.response import ApiResponse, success_response
from src.bx_gateway.auth.dependencies import get_current_user
from src.bx_gateway.user.db_models import UserModel
from src.bx_valuation.application.service import BookValuationService

router = APIRouter(prefix="/books", tags=["books"])

_service = BookService()
_valuation = BookValuationService()


@router.get("")
async def list_my_books(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    include_deleted: bool = Query(False, description="Include soft-deleted books"),
) -> ApiResponse:
    data = await _service.list_user_books(db, str(current_user.id), include_deleted)
    return success_response(data.model_dump(), request)


@router.get("/{book_id}")
async def get_book(
    book_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_book(db, book_id)
    return success_response(data.model_dump(), request)


@router.get("/{book_id}/points")
async def get_book_points(
    book_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    points = await _valuation.get_book_points(db, book_id)
    return success_response(BookPointsResponse(book_id=book_id, points=points).model_dump(), request)


@router.patch("/{book_id}/availability")
async def set_availability(
    book_id: str,
    body: SetAvailabilityRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.set_availability(db, book_id, str(current_user.id), body.is_available)
    return success_response(data.model_dump(), request)


@router.delete("/{book_id}")
async def delete_book(
    book_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete_book(db, book_id, str(current_user.id))
    await _valuation.invalidate(book_id)
    return success_response({"book_id": book_id, "deleted": True}, request)


@router.post("/{book_id}/restore")
async def restore_book(
    book_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.restore_book(db, book_id, str(current_user.id))
    return success_response(data.model_dump(), request)
