from uuid import UUID
from typing import List, Optional
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from cineseat.db.session import get_db
from cineseat.api.deps import get_current_admin_user
from cineseat.core.config import settings
from cineseat.models.user import User
from cineseat.models.movie import Movie
from cineseat.models.showtime import Showtime
from cineseat.models.booking import Booking
from cineseat.schemas.showtime import (
    ShowtimeCreate,
    ShowtimeBulkCreate,
    ShowtimeUpdate,
    BulkCreateResult,
    Showtime as ShowtimeSchema,
)
from cineseat.utils.showtimes import create_showtimes_bulk, is_past, showtime_exists, upcoming_filter

router = APIRouter(prefix="/admin/showtimes", tags=["Admin - Showtimes"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_movie_or_404(movie_id: UUID, db: Session) -> Movie:
    movie = db.query(Movie).filter(Movie.id == movie_id, Movie.is_active == True).first()  # noqa: E712
    if not movie:
        raise HTTPException(status_code=404, detail="Movie not found")
    return movie


def _check_duplicate(db: Session, movie_id: UUID, show_date: date, start_time, exclude_id: Optional[UUID] = None):
    """Raise 409 if the movie already has a showtime at this date and time."""
    if showtime_exists(db, movie_id, show_date, start_time, exclude_id=exclude_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A showtime already exists on {show_date} at {start_time.strftime('%H:%M')}",
        )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post("/", response_model=ShowtimeSchema, status_code=status.HTTP_201_CREATED)
def create_showtime(
    data: ShowtimeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _get_movie_or_404(data.movie_id, db)
    if is_past(data.show_date, data.start_time):
        raise HTTPException(status_code=400, detail="Showtime start is in the past")
    _check_duplicate(db, data.movie_id, data.show_date, data.start_time)

    showtime = Showtime(
        movie_id=data.movie_id,
        show_date=data.show_date,
        start_time=data.start_time,
        price_map=data.price_map.model_dump(mode="json"),
        seats_reserved=[],
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


@router.post("/bulk", response_model=BulkCreateResult, status_code=status.HTTP_201_CREATED)
def create_showtimes_for_days(
    data: ShowtimeBulkCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Create the same showtime on consecutive days starting at `start_date`.
    Past dates and existing (movie, date, time) showtimes are skipped, not errors.
    """
    _get_movie_or_404(data.movie_id, db)
    created, skipped = create_showtimes_bulk(
        db,
        movie_id=data.movie_id,
        start_date=data.start_date,
        start_time=data.start_time,
        price_map=data.price_map.model_dump(mode="json"),
        days=data.days or settings.BULK_SHOWTIME_DEFAULT_DAYS,
    )
    return BulkCreateResult(created=created, skipped=skipped)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[ShowtimeSchema])
def list_showtimes(
    movie_id: Optional[UUID] = None,
    date: Optional[date] = Query(None, description="Filter by date (YYYY-MM-DD)"),
    upcoming_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Showtime)
    if movie_id:
        query = query.filter(Showtime.movie_id == movie_id)
    if date:
        query = query.filter(Showtime.show_date == date)
    if upcoming_only:
        query = query.filter(upcoming_filter())

    return query.order_by(Showtime.show_date.desc(), Showtime.start_time.desc()).all()


@router.get("/{id}", response_model=ShowtimeSchema)
def get_showtime(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    showtime = db.query(Showtime).filter(Showtime.id == id).first()
    if not showtime:
        raise HTTPException(status_code=404, detail="Showtime not found")
    return showtime


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------


@router.patch("/{id}", response_model=ShowtimeSchema)
def update_showtime(
    id: UUID,
    data: ShowtimeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Change date, start time or prices. The reserved-seat list is not editable
    here; requests that include it are rejected with 422. A showtime cannot be
    moved to a start that has already passed.
    """
    # Same row lock as a booking takes, so the two never interleave.
    showtime = (
        db.query(Showtime)
        .populate_existing()
        .with_for_update()
        .filter(Showtime.id == id)
        .first()
    )
    if not showtime:
        raise HTTPException(status_code=404, detail="Showtime not found")

    updates = data.model_dump(exclude_unset=True, exclude={"price_map"})
    new_date = updates.get("show_date") or showtime.show_date
    new_start = updates.get("start_time") or showtime.start_time
    if new_date != showtime.show_date or new_start != showtime.start_time:
        if is_past(new_date, new_start):
            raise HTTPException(status_code=400, detail="Showtime start is in the past")
        _check_duplicate(db, showtime.movie_id, new_date, new_start, exclude_id=id)

    for field, value in updates.items():
        if value is not None:
            setattr(showtime, field, value)
    if data.price_map is not None:
        showtime.price_map = data.price_map.model_dump(mode="json")

    try:
        db.commit()
    except StaleDataError:
        # A booking changed the row after it was read.
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Showtime changed while editing, reload and try again",
        )
    db.refresh(showtime)
    return showtime


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_showtime(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Delete a showtime. Refused with 409 while any booking references it."""
    # Row lock: a concurrent booking of this showtime waits for the delete to finish.
    showtime = db.query(Showtime).filter(Showtime.id == id).with_for_update().first()
    if not showtime:
        raise HTTPException(status_code=404, detail="Showtime not found")

    booking_count = db.query(Booking.id).filter(Booking.showtime_id == id).count()
    if booking_count:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Showtime has {booking_count} booking(s) and cannot be deleted",
        )

    db.delete(showtime)
    db.commit()
    return {"id": str(id), "deleted": True}
