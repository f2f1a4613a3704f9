
from __future__ import annotations

from typing import Annotated, Optional, List
from pydantic import BaseModel, Field, UUID4, field_serializer
from decimal import Decimal
from datetime import date, time, datetime

from cineseat.models.booking import MAX_DECLARED_TOTAL
from cineseat.schemas.movie import MovieSummary


# Booking: Create (POST /bookings): the reserve-and-book request
class BookingCreate(BaseModel):
    showtime_id: UUID4
    movie_id: Optional[UUID4] = None
    seats: Annotated[List[str], Field(min_length=1)]
    # What the checkout screen displayed; informational only, the server recomputes both.
    seat_type: Optional[str] = None
    total: Optional[Decimal] = Field(None, ge=0, le=MAX_DECLARED_TOTAL, decimal_places=2)


# Nested showtime summary for booking responses
class BookingShowtimeSummary(BaseModel):
    show_date: date
    start_time: time

    class Config:
        from_attributes = True

    @field_serializer("start_time")
    def serialize_start_time(self, v: time) -> str:
        return v.strftime("%H:%M")


# Booking: Full response (POST /bookings, GET /bookings/{id})
class Booking(BaseModel):
    id: UUID4
    user_id: UUID4
    movie_id: UUID4
    showtime_id: UUID4
    seats: List[str]
    seat_type: str
    total: Decimal
    declared_total: Optional[Decimal] = None
    status: str
    created_at: datetime
    redeemed_at: Optional[datetime] = None
    qr_payload: str          # what the ticket QR code encodes: the booking id
    movie: Optional[MovieSummary] = None
    showtime: Optional[BookingShowtimeSummary] = None

    class Config:
        from_attributes = True


# Booking: Admin view (GET /admin/bookings, includes buyer info)
class AdminBooking(Booking):
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


# Redemption (POST /admin/bookings/{id}/redeem)
class RedemptionResponse(BaseModel):
    id: UUID4
    status: str
    redeemed_at: Optional[datetime] = None
    already_redeemed: bool
    message: str


# Import at the bottom to avoid circular imports
from cineseat.schemas.user import UserSummary  # noqa: E402

AdminBooking.model_rebuild()
