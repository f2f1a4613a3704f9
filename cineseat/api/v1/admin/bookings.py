from uuid import UUID
from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload

from cineseat.db.session import get_db
from cineseat.api.deps import get_current_admin_user
from cineseat.models.user import User
from cineseat.models.booking import Booking
from cineseat.models.showtime import Showtime
from cineseat.schemas.booking import AdminBooking, RedemptionResponse
from cineseat.schemas.common import ErrorResponse, PaginatedResponse, paginate
from cineseat.services.booking import redeem

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


def _admin_booking_query(db: Session):
    return db.query(Booking).options(
        joinedload(Booking.user),
        joinedload(Booking.movie),
        joinedload(Booking.showtime),
    )


@router.get("/", response_model=PaginatedResponse[AdminBooking])
def list_all_bookings(
    # --- Filters ---
    movie_id: Optional[UUID] = Query(None, description="Filter by movie"),
    showtime_id: Optional[UUID] = Query(None, description="Filter by showtime"),
    date: Optional[date] = Query(None, description="Filter by show date (YYYY-MM-DD)"),
    status: Optional[str] = Query(None, description="Filter by booking status (paid, redeemed)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Return all bookings, newest first, with buyer info."""
    query = _admin_booking_query(db)

    if movie_id:
        query = query.filter(Booking.movie_id == movie_id)
    if showtime_id:
        query = query.filter(Booking.showtime_id == showtime_id)
    if date:
        query = query.join(Showtime, Showtime.id == Booking.showtime_id).filter(Showtime.show_date == date)
    if status:
        query = query.filter(Booking.status == status)

    return paginate(
        query.order_by(Booking.created_at.desc()),
        page,
        limit,
        serialize=AdminBooking.model_validate,
    )


@router.get("/{booking_id}", response_model=AdminBooking)
def get_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Look up a scanned ticket (the QR payload is the booking id)."""
    booking = _admin_booking_query(db).filter(Booking.id == booking_id).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.post(
    "/{booking_id}/redeem",
    response_model=RedemptionResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def redeem_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Mark a ticket as used at the door. Calling it again is safe: the response
    says `already_redeemed: true` and the original redemption time is kept.
    """
    result = redeem(db, booking_id)
    booking = result.booking
    if result.already_redeemed:
        message = "Ticket was already redeemed"
    else:
        message = "Ticket redeemed"
    return RedemptionResponse(
        id=booking.id,
        status=booking.status,
        redeemed_at=booking.redeemed_at,
        already_redeemed=result.already_redeemed,
        message=message,
    )
