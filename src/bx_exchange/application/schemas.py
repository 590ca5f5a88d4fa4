"""Pydantic schemas for bx_exchange API."""

from pydantic import BaseModel, Field

from src.bx_exchange.domain.models import Exchange


class CreateExchangeRequest(BaseModel):
    book_id: str = Field(..., min_length=1)


class ExchangeResponse(BaseModel):
    id: str
    book_id: str
    from_user_id: str
    to_user_id: str
    points_used: int
    status: str
    created_at: str | None
    completed_at: str | None


class ExchangeListResponse(BaseModel):
    items: list[ExchangeResponse]


class CancelExchangeResponse(BaseModel):
    exchange_id: str
    cancelled: bool = True


def exchange_to_response(exchange: Exchange) -> ExchangeResponse:
    return ExchangeResponse(
        id=exchange.id,
        book_id=exchange.book_id,
        from_user_id=exchange.from_user_id,
        to_user_id=exchange.to_user_id,
        points_used=exchange.points_used,
        status=exchange.status,
        created_at=exchange.created_at.isoformat() if exchange.created_at else None,
        completed_at=exchange.completed_at.isoformat() if exchange.completed_at else None,
    )
