import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cineseat.core.config import settings
from cineseat.core.errors import StorageUnavailable
from cineseat.models.showtime import Showtime

logger = logging.getLogger(__name__)


def venue_now() -> datetime:
    """
    Current wall-clock time at the venue, timezone-naive.

    show_date/start_time are stored as naive local values, so comparisons
    happen in the same frame.
    """
    if settings.VENUE_TIMEZONE:
        return datetime.now(ZoneInfo(settings.VENUE_TIMEZONE)).replace(tzinfo=None)
    return datetime.now()


def is_past(show_date: date, start_time: time, now: Optional[datetime] = None) -> bool:
    """True once the scheduled start (date + start time) is earlier than now."""
    now = now or venue_now()
    return datetime.combine(show_date, start_time) < now


def upcoming_filter(now: Optional[datetime] = None):
    """
    SQL filter keeping showtimes that have not started yet:
      - show_date  > today, or
      - show_date == today AND start_time >= now.time()
    """
    now = now or venue_now()
    today = now.date()
    return or_(
        Showtime.show_date > today,
        and_(
            Showtime.show_date == today,
            Showtime.start_time >= now.time().replace(microsecond=0),
        ),
    )


def showtime_exists(db: Session, movie_id: UUID, show_date: date, start_time: time,
                    exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(Showtime.id).filter(
        Showtime.movie_id == movie_id,
        Showtime.show_date == show_date,
        Showtime.start_time == start_time,
    )
    if exclude_id:
        query = query.filter(Showtime.id != exclude_id)
    return query.first() is not None


def create_showtimes_bulk(
    db: Session,
    movie_id: UUID,
    start_date: date,
    start_time: time,
    price_map: dict,
    days: int,
) -> Tuple[int, int]:
    """
    Create the same showtime on `days` consecutive dates starting at start_date.

    A date is skipped when its start is already in the past (including today
    with an earlier start time) or when the movie already has a showtime at
    that date and time. Every other date gets a showtime with no reserved seats.

    Returns (created, skipped). Only storage failures raise.
    """
    created = 0
    skipped = 0
    now = venue_now()

    try:
        for offset in range(days):
            show_date = start_date + timedelta(days=offset)

            if is_past(show_date, start_time, now=now):
                skipped += 1
                continue

            if showtime_exists(db, movie_id, show_date, start_time):
                skipped += 1
                continue

            db.add(Showtime(
                movie_id=movie_id,
                show_date=show_date,
                start_time=start_time,
                price_map=dict(price_map),
                seats_reserved=[],
            ))
            created += 1

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Bulk showtime creation failed for movie %s.", movie_id)
        raise StorageUnavailable("Could not save showtimes, please try again") from exc

    logger.info(
        "Bulk showtimes for movie %s from %s: %d created, %d skipped.",
        movie_id, start_date, created, skipped,
    )
    return created, skipped
