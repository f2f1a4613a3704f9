from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from cineseat.db.session import get_db
from cineseat.api.deps import get_current_user
from cineseat.models.user import User
from cineseat.models.booking import Booking
from cineseat.schemas.booking import BookingCreate, Booking as BookingSchema
from cineseat.schemas.common import ErrorResponse, PaginatedResponse, SeatsUnavailableError, paginate
from cineseat.services.booking import reserve_and_book

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def _load_booking(booking_id: UUID, user_id, db: Session) -> Optional[Booking]:
    """Load a booking with its movie and showtime eager-loaded."""
    return (
        db.query(Booking)
        .options(joinedload(Booking.movie), joinedload(Booking.showtime))
        .filter(Booking.id == booking_id, Booking.user_id == user_id)
        .first()
    )


# ---------------------------------------------------------------------------
# POST /bookings: reserve seats and create the paid booking
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": SeatsUnavailableError},
        422: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Reserve the selected seats and issue the ticket in one transaction.

    - Fails with 409 `seats_unavailable` (listing the taken seats) when any
      seat was booked since the seat map was loaded; reselect and retry.
    - Fails with 409 `showtime_expired` once the showtime has started.
    - `total` and `seat_type` in the request are what the client displayed;
      the charge is always recomputed from the showtime's prices.
    """
    booking = reserve_and_book(
        db,
        buyer_id=current_user.id,
        showtime_id=data.showtime_id,
        movie_id=data.movie_id,
        seat_ids=data.seats,
        declared_category=data.seat_type,
        declared_total=data.total,
    )
    return _load_booking(booking.id, current_user.id, db)


# ---------------------------------------------------------------------------
# GET /bookings: current user's tickets
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[BookingSchema])
def list_my_bookings(
    status: Optional[str] = Query(None, description="Filter by status: paid, redeemed"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return the authenticated user's bookings, newest first."""
    query = (
        db.query(Booking)
        .options(joinedload(Booking.movie), joinedload(Booking.showtime))
        .filter(Booking.user_id == current_user.id)
    )
    if status:
        query = query.filter(Booking.status == status)

    return paginate(
        query.order_by(Booking.created_at.desc()),
        page,
        limit,
        serialize=BookingSchema.model_validate,
    )


@router.get("/{booking_id}", response_model=BookingSchema)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return a single booking. Only the owning user can access it."""
    booking = _load_booking(booking_id, current_user.id, db)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking
