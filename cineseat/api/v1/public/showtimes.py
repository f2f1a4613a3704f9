from uuid import UUID
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from cineseat.db.session import get_db
from cineseat.models.showtime import Showtime
from cineseat.schemas.showtime import (
    ShowtimeWithMovie,
    SeatMapResponse,
    SeatRow,
    SeatState,
)
from cineseat.utils.seats import all_seat_ids, category_of, parse_seat_id
from cineseat.utils.showtimes import is_past

router = APIRouter(prefix="/showtimes", tags=["Showtimes"])


def _get_showtime_or_404(showtime_id: UUID, db: Session) -> Showtime:
    showtime = (
        db.query(Showtime)
        .options(joinedload(Showtime.movie))
        .filter(Showtime.id == showtime_id)
        .first()
    )
    if not showtime:
        raise HTTPException(status_code=404, detail="Showtime not found")
    return showtime


@router.get("/{showtime_id}", response_model=ShowtimeWithMovie)
def get_showtime(showtime_id: UUID, db: Session = Depends(get_db)):
    return _get_showtime_or_404(showtime_id, db)


@router.get("/{showtime_id}/seat-map", response_model=SeatMapResponse)
def get_seat_map(showtime_id: UUID, db: Session = Depends(get_db)):
    """
    The 8x10 seat grid for a showtime, grouped by row, with each row's
    category and price and whether each seat is already reserved.
    This is a snapshot: the booking transaction re-checks every seat.
    Does not require authentication.
    """
    showtime = _get_showtime_or_404(showtime_id, db)
    reserved = set(showtime.seats_reserved or [])

    # Group the grid by row, in rendering order
    rows_dict: dict[str, dict] = {}
    for seat_id in all_seat_ids():
        row, number = parse_seat_id(seat_id)
        if row not in rows_dict:
            category = category_of(seat_id).value
            rows_dict[row] = {
                "label": row,
                "category": category,
                "price": Decimal(str(showtime.price_map[category])),
                "seats": [],
            }
        rows_dict[row]["seats"].append(
            SeatState(id=seat_id, number=number, reserved=seat_id in reserved)
        )

    return SeatMapResponse(
        showtime_id=showtime.id,
        show_date=showtime.show_date,
        start_time=showtime.start_time.strftime("%H:%M"),
        is_past=is_past(showtime.show_date, showtime.start_time),
        available_count=len(all_seat_ids()) - len(reserved),
        reserved_count=len(reserved),
        rows=[SeatRow(**r) for r in rows_dict.values()],
    )
