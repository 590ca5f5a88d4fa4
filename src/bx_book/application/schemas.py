"""Pydantic schemas for bx_book API."""

from pydantic import BaseModel

from src.bx_book.domain.models import Book


class BookResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    author: str
    condition: str
    is_available: bool
    is_deleted: bool
    computed_points: int | None
    points_last_calculated_at: str | None
    created_at: str | None


class BookListResponse(BaseModel):
    items: list[BookResponse]


class BookPointsResponse(BaseModel):
    book_id: str
    points: int


class SetAvailabilityRequest(BaseModel):
    is_available: bool


def book_to_response(book: Book) -> BookResponse:
    return BookResponse(
        id=book.id,
        owner_id=book.owner_id,
        title=book.title,
        author=book.author,
        condition=book.condition,
        is_available=book.is_available,
        is_deleted=book.is_deleted,
        computed_points=book.computed_points,
        points_last_calculated_at=(
            book.points_last_calculated_at.isoformat() if book.points_last_calculated_at else None
        ),
        created_at=book.created_at.isoformat() if book.created_at else None,
    )
