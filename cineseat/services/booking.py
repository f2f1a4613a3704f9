"""
Seat reservation and redemption.

reserve_and_book() is the only code path that writes Showtime.seats_reserved.
The read of the current reservations, the conflict check, the write of the
merged list and the insert of the booking happen in one database transaction:

  * the showtime row is read with SELECT ... FOR UPDATE, so concurrent buyers
    of the same showtime queue behind each other on PostgreSQL;
  * Showtime.version is the mapper's version counter, so a writer that read a
    stale row (backends without row locks) fails at flush instead of
    overwriting the newer list.

Nothing is retried here. Callers re-fetch the seat map and submit a fresh
selection.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from cineseat.core.errors import (
    BookingNotFound,
    CineSeatError,
    InvalidSeatSelection,
    SeatConflict,
    ShowtimeExpired,
    ShowtimeNotFound,
    StorageUnavailable,
)
from cineseat.models.booking import MAX_DECLARED_TOTAL, Booking, BookingStatus
from cineseat.models.showtime import Showtime
from cineseat.utils.pricing import compute_total, derive_category
from cineseat.utils.seats import is_valid_seat_id, normalize_seat_id, sort_seat_ids
from cineseat.utils.showtimes import is_past

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    booking: Booking
    already_redeemed: bool


def validate_seat_selection(seat_ids: Iterable[str]) -> List[str]:
    """Normalize a requested seat set: non-empty, on the grid, deduplicated, grid order."""
    seat_ids = list(seat_ids or [])
    if not seat_ids:
        raise InvalidSeatSelection("Select at least one seat")

    invalid = [s for s in seat_ids if not is_valid_seat_id(s)]
    if invalid:
        raise InvalidSeatSelection(f"Unknown seat id(s): {', '.join(map(str, invalid))}")

    return sort_seat_ids(normalize_seat_id(s) for s in seat_ids)


def _storable_declared_total(declared_total) -> Optional[Decimal]:
    """The client's total as it fits Booking.declared_total, or None when it doesn't."""
    if declared_total is None:
        return None
    try:
        value = Decimal(str(declared_total))
        if not value.is_finite():
            return None
        value = value.quantize(Decimal("0.01"))
    except InvalidOperation:
        return None
    if value < 0 or value > MAX_DECLARED_TOTAL:
        return None
    return value


def _lock_showtime(db: Session, showtime_id: UUID) -> Optional[Showtime]:
    return (
        db.query(Showtime)
        .populate_existing()
        .with_for_update()
        .filter(Showtime.id == showtime_id)
        .first()
    )


def _conflicts_after_stale_write(db: Session, showtime_id: UUID, seats: List[str]) -> List[str]:
    fresh = db.query(Showtime).populate_existing().filter(Showtime.id == showtime_id).first()
    if fresh is None:
        return []
    reserved = set(fresh.seats_reserved or [])
    return [s for s in seats if s in reserved]


def reserve_and_book(
    db: Session,
    *,
    buyer_id: UUID,
    showtime_id: UUID,
    movie_id: Optional[UUID],
    seat_ids: Iterable[str],
    declared_category: Optional[str] = None,
    declared_total: Optional[Decimal] = None,
) -> Booking:
    """
    Reserve `seat_ids` on a showtime and create the paid booking for them.

    Raises ShowtimeNotFound, ShowtimeExpired, SeatConflict, InvalidSeatSelection
    or StorageUnavailable. On any failure the transaction is rolled back and
    neither the showtime nor the bookings table changes.
    """
    seats = validate_seat_selection(seat_ids)

    try:
        showtime = _lock_showtime(db, showtime_id)
        if showtime is None or (movie_id is not None and showtime.movie_id != movie_id):
            raise ShowtimeNotFound(showtime_id)

        if is_past(showtime.show_date, showtime.start_time):
            raise ShowtimeExpired(showtime_id)

        reserved = list(showtime.seats_reserved or [])
        reserved_set = set(reserved)
        conflicts = [s for s in seats if s in reserved_set]
        if conflicts:
            raise SeatConflict(conflicts)

        total = compute_total(showtime.price_map, seats)
        seat_type = derive_category(seats)
        seat_type = getattr(seat_type, "value", seat_type)

        if declared_total is not None and Decimal(str(declared_total)) != total:
            logger.warning(
                "Declared total %s differs from computed %s for showtime %s (buyer %s); charging computed.",
                declared_total, total, showtime_id, buyer_id,
            )
        if declared_category and declared_category != seat_type:
            logger.warning(
                "Declared category %s differs from derived %s for showtime %s.",
                declared_category, seat_type, showtime_id,
            )

        # Assign a new list so the JSON column is flagged dirty.
        showtime.seats_reserved = sort_seat_ids(reserved_set.union(seats))

        booking_id = uuid4()
        booking = Booking(
            id=booking_id,
            user_id=buyer_id,
            movie_id=showtime.movie_id,
            showtime_id=showtime.id,
            seats=seats,
            seat_type=seat_type,
            total=total,
            declared_total=_storable_declared_total(declared_total),
            status=BookingStatus.paid.value,
        )
        db.add(booking)
        db.commit()
    except CineSeatError as exc:
        db.rollback()
        logger.info("Booking rejected for showtime %s: %s", showtime_id, exc.message)
        raise
    except StaleDataError as exc:
        # Another transaction committed a newer reservation list first.
        db.rollback()
        try:
            conflicts = _conflicts_after_stale_write(db, showtime_id, seats)
        except SQLAlchemyError as read_exc:
            logger.exception("Could not re-read showtime %s after a concurrent update.", showtime_id)
            raise StorageUnavailable() from read_exc
        finally:
            db.rollback()
        if conflicts:
            logger.info("Concurrent booking took seats %s on showtime %s.", conflicts, showtime_id)
            raise SeatConflict(conflicts) from exc
        logger.warning("Concurrent update on showtime %s; booking not saved.", showtime_id)
        raise StorageUnavailable("Seat availability changed while booking, please try again") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure while booking showtime %s.", showtime_id)
        raise StorageUnavailable() from exc

    try:
        db.refresh(booking)
    except SQLAlchemyError as exc:
        # The booking is committed; only reading it back failed.
        logger.exception("Booking %s saved but could not be reloaded.", booking_id)
        raise StorageUnavailable("Booking saved but could not be loaded, check your tickets") from exc
    logger.info(
        "Booking %s created: showtime %s, seats %s, total %s.",
        booking.id, showtime_id, ",".join(seats), total,
    )
    return booking


def get_booking(db: Session, booking_id: UUID) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


def redeem(db: Session, booking_id: UUID) -> RedemptionResult:
    """
    Mark a paid booking as redeemed (scanned or printed at the door).

    A second call reports already_redeemed=True and leaves the record as it
    was, redeemed_at included. Seats stay reserved either way.
    """
    try:
        booking = get_booking(db, booking_id)

        # Conditional update: of two concurrent redeemers only one matches status='paid'.
        result = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == BookingStatus.paid.value)
            .values(status=BookingStatus.redeemed.value, redeemed_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        already_redeemed = result.rowcount == 0
        db.commit()
    except BookingNotFound:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure while redeeming booking %s.", booking_id)
        raise StorageUnavailable() from exc

    try:
        db.refresh(booking)
    except SQLAlchemyError as exc:
        logger.exception("Booking %s redemption saved but could not be reloaded.", booking_id)
        raise StorageUnavailable() from exc
    if already_redeemed:
        logger.info("Booking %s was already redeemed at %s.", booking_id, booking.redeemed_at)
    else:
        logger.info("Booking %s redeemed.", booking_id)
    return RedemptionResult(booking=booking, already_redeemed=already_redeemed)
