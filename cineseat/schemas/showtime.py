
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, UUID4, field_serializer, field_validator
from decimal import Decimal
from datetime import date, time, datetime

from cineseat.schemas.movie import MovieSummary


def _to_minutes(v: time) -> time:
    return v.replace(second=0, microsecond=0, tzinfo=None)


class PriceMap(BaseModel):
    Classic: Decimal = Field(ge=0)
    Prime: Decimal = Field(ge=0)
    Superior: Decimal = Field(ge=0)


# Showtime: Create (admin POST /admin/showtimes)
class ShowtimeCreate(BaseModel):
    movie_id: UUID4
    show_date: date
    start_time: time            # "HH:mm", venue-local
    price_map: PriceMap

    @field_validator("start_time")
    @classmethod
    def strip_seconds(cls, v):
        return _to_minutes(v)


# Showtime: Bulk create over consecutive days (admin POST /admin/showtimes/bulk)
class ShowtimeBulkCreate(BaseModel):
    movie_id: UUID4
    start_date: date
    start_time: time
    days: Optional[int] = Field(None, ge=1, le=31)   # defaults to BULK_SHOWTIME_DEFAULT_DAYS
    price_map: PriceMap

    @field_validator("start_time")
    @classmethod
    def strip_seconds(cls, v):
        return _to_minutes(v)


class BulkCreateResult(BaseModel):
    created: int
    skipped: int


# Showtime: Update (admin PATCH /admin/showtimes/{id})
# The reserved seat list is deliberately absent: only bookings change it.
class ShowtimeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    show_date: Optional[date] = None
    start_time: Optional[time] = None
    price_map: Optional[PriceMap] = None

    @field_validator("start_time")
    @classmethod
    def strip_seconds(cls, v):
        return _to_minutes(v) if v is not None else v


# Showtime: DB response
class Showtime(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    movie_id: UUID4
    show_date: date
    start_time: time
    price_map: PriceMap
    seats_reserved: List[str] = []
    created_at: Optional[datetime] = None

    @field_serializer("start_time")
    def serialize_start_time(self, v: time) -> str:
        return v.strftime("%H:%M")


# Showtime with nested movie, used in public listings
class ShowtimeWithMovie(Showtime):
    movie: Optional[MovieSummary] = None


# --- Seat Map (seat selection screen) ---

class SeatState(BaseModel):
    id: str          # "C7"
    number: int
    reserved: bool


class SeatRow(BaseModel):
    label: str
    category: str
    price: Decimal
    seats: List[SeatState]


class SeatMapResponse(BaseModel):
    showtime_id: UUID4
    show_date: date
    start_time: str
    is_past: bool
    available_count: int
    reserved_count: int
    rows: List[SeatRow]
