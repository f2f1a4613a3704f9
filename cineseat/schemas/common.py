
from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper, used by all list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Error responses (rendered by the CineSeatError handler in main.py)
class ErrorResponse(BaseModel):
    error: str
    message: str


class SeatsUnavailableError(ErrorResponse):
    unavailable_seat_ids: List[str]


def paginate(query, page: int, limit: int, serialize=None) -> PaginatedResponse:
    """Apply offset/limit to an ordered query and wrap the page."""
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return PaginatedResponse(
        data=[serialize(r) for r in rows] if serialize else rows,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )
