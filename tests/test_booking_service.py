import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import time
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from cineseat.core.errors import (
    BookingNotFound,
    InvalidSeatSelection,
    SeatConflict,
    ShowtimeExpired,
    ShowtimeNotFound,
    StorageUnavailable,
)
from cineseat.models import Booking, Showtime
from cineseat.services import booking as booking_service
from cineseat.services.booking import redeem, reserve_and_book
from cineseat.utils.seats import all_seat_ids

from conftest import TODAY, YESTERDAY, make_movie, make_showtime, make_user


def _reload(db, showtime_id):
    db.expire_all()
    return db.query(Showtime).filter(Showtime.id == showtime_id).one()


def _book(db, buyer, showtime, seats, **kwargs):
    return reserve_and_book(
        db,
        buyer_id=buyer.id,
        showtime_id=showtime.id,
        movie_id=showtime.movie_id,
        seat_ids=seats,
        **kwargs,
    )


def test_clean_booking_reserves_seats_and_charges_prices(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["B3", "B4"], declared_category="Classic")

    assert booking.id is not None
    assert booking.status == "paid"
    assert booking.seats == ["B3", "B4"]
    assert booking.seat_type == "Classic"
    assert booking.total == Decimal("1600")
    assert booking.movie_id == showtime.movie_id
    assert booking.qr_payload == str(booking.id)

    assert set(_reload(db, showtime.id).seats_reserved) == {"B3", "B4"}
    assert db.query(Booking).count() == 1


def test_conflict_rejects_whole_request(db, buyer, movie):
    showtime = make_showtime(db, movie, seats_reserved=["B3"])

    with pytest.raises(SeatConflict) as excinfo:
        _book(db, buyer, showtime, ["B3", "B4"])

    assert excinfo.value.seat_ids == ["B3"]
    assert _reload(db, showtime.id).seats_reserved == ["B3"]
    assert db.query(Booking).count() == 0


def test_overlapping_bookings_only_first_wins(db, movie):
    showtime = make_showtime(db, movie)
    first, second, third = (make_user(db) for _ in range(3))

    _book(db, first, showtime, ["E5", "E6"])
    with pytest.raises(SeatConflict) as excinfo:
        _book(db, second, showtime, ["E6", "E7"])
    assert excinfo.value.seat_ids == ["E6"]

    # A fresh, disjoint selection still goes through.
    _book(db, third, showtime, ["E7", "E8"])

    booked = [seat for b in db.query(Booking).all() for seat in b.seats]
    assert len(booked) == len(set(booked)) == 4
    assert set(booked) <= set(all_seat_ids())
    assert set(_reload(db, showtime.id).seats_reserved) == set(booked)


def test_expired_showtime_yesterday(db, buyer, movie):
    showtime = make_showtime(db, movie, show_date=YESTERDAY, start_time=time(23, 0))

    with pytest.raises(ShowtimeExpired):
        _book(db, buyer, showtime, ["A1"])

    assert _reload(db, showtime.id).seats_reserved == []
    assert db.query(Booking).count() == 0


def test_expired_showtime_earlier_today(db, buyer, movie):
    # Clock is pinned at 12:00.
    showtime = make_showtime(db, movie, show_date=TODAY, start_time=time(11, 59))

    with pytest.raises(ShowtimeExpired):
        _book(db, buyer, showtime, ["A1"])


def test_later_today_is_still_bookable(db, buyer, movie):
    showtime = make_showtime(db, movie, show_date=TODAY, start_time=time(12, 30))
    assert _book(db, buyer, showtime, ["A1"]).status == "paid"


def test_unknown_showtime(db, buyer, movie):
    with pytest.raises(ShowtimeNotFound):
        reserve_and_book(
            db,
            buyer_id=buyer.id,
            showtime_id=uuid.uuid4(),
            movie_id=movie.id,
            seat_ids=["A1"],
        )


def test_showtime_of_another_movie_is_not_found(db, buyer, showtime):
    other = make_movie(db, title="Dune")
    with pytest.raises(ShowtimeNotFound):
        reserve_and_book(
            db,
            buyer_id=buyer.id,
            showtime_id=showtime.id,
            movie_id=other.id,
            seat_ids=["A1"],
        )
    assert _reload(db, showtime.id).seats_reserved == []


def test_client_total_is_not_trusted(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["A1", "D2", "G3"], declared_category="Classic", declared_total=Decimal("1"))

    assert booking.total == Decimal("3500")
    assert booking.declared_total == Decimal("1")
    assert booking.seat_type == "Mixed"


@pytest.mark.parametrize("seats", [[], ["I1"], ["A11"], ["A1", "nope"]])
def test_invalid_selection_changes_nothing(db, buyer, showtime, seats):
    with pytest.raises(InvalidSeatSelection):
        _book(db, buyer, showtime, seats)
    assert _reload(db, showtime.id).seats_reserved == []
    assert db.query(Booking).count() == 0


def test_duplicate_and_lowercase_ids_collapse(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["b3", "B3", "A1"])
    assert booking.seats == ["A1", "B3"]
    assert booking.total == Decimal("1600")


def test_stale_read_is_reported_as_conflict(session_factory, monkeypatch):
    setup = session_factory()
    movie = make_movie(setup)
    showtime = make_showtime(setup, movie)
    early, late = make_user(setup), make_user(setup)

    # `stale_db` reads the showtime before the other buyer commits and then
    # writes without re-reading, as a store without row locks would.
    stale_db = session_factory()
    stale = stale_db.query(Showtime).filter(Showtime.id == showtime.id).one()
    _book(setup, early, showtime, ["C1"])
    monkeypatch.setattr(booking_service, "_lock_showtime", lambda db, showtime_id: stale)

    with pytest.raises(SeatConflict) as excinfo:
        _book(stale_db, late, showtime, ["C1", "C2"])
    assert excinfo.value.seat_ids == ["C1"]

    assert _reload(setup, showtime.id).seats_reserved == ["C1"]
    assert setup.query(Booking).count() == 1
    stale_db.close()
    setup.close()


def test_stale_read_with_disjoint_seats_is_storage_error(session_factory, monkeypatch):
    setup = session_factory()
    movie = make_movie(setup)
    showtime = make_showtime(setup, movie)
    early, late = make_user(setup), make_user(setup)

    stale_db = session_factory()
    stale = stale_db.query(Showtime).filter(Showtime.id == showtime.id).one()
    _book(setup, early, showtime, ["C1"])
    monkeypatch.setattr(booking_service, "_lock_showtime", lambda db, showtime_id: stale)

    with pytest.raises(StorageUnavailable):
        _book(stale_db, late, showtime, ["C5"])

    # The concurrent booking was not overwritten.
    assert _reload(setup, showtime.id).seats_reserved == ["C1"]
    assert setup.query(Booking).count() == 1
    stale_db.close()
    setup.close()


def test_redeem_is_one_way_and_idempotent(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["H1"])

    first = redeem(db, booking.id)
    assert first.already_redeemed is False
    assert first.booking.status == "redeemed"
    redeemed_at = first.booking.redeemed_at
    assert redeemed_at is not None

    second = redeem(db, booking.id)
    assert second.already_redeemed is True
    assert second.booking.status == "redeemed"
    assert second.booking.redeemed_at == redeemed_at

    # Redemption never frees seats.
    assert _reload(db, showtime.id).seats_reserved == ["H1"]


def test_redeem_unknown_booking(db):
    with pytest.raises(BookingNotFound):
        redeem(db, uuid.uuid4())


def test_unstorable_declared_total_is_dropped(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["A1"], declared_total=Decimal("123456789012.345"))

    assert booking.total == Decimal("800")
    assert booking.declared_total is None
    assert _reload(db, showtime.id).seats_reserved == ["A1"]


def test_declared_total_is_stored_to_the_cent(db, buyer, showtime):
    booking = _book(db, buyer, showtime, ["A1"], declared_total=Decimal("799.999"))
    assert booking.declared_total == Decimal("800.00")


def test_storage_failure_changes_nothing(db, showtime):
    # No buyer id: the booking insert fails after the showtime update is queued.
    with pytest.raises(StorageUnavailable):
        reserve_and_book(
            db,
            buyer_id=None,
            showtime_id=showtime.id,
            movie_id=showtime.movie_id,
            seat_ids=["B3", "B4"],
        )

    assert _reload(db, showtime.id).seats_reserved == []
    assert db.query(Booking).count() == 0


def test_concurrent_buyers_of_same_seats(session_factory):
    setup = session_factory()
    movie = make_movie(setup)
    showtime = make_showtime(setup, movie)
    buyer_ids = [make_user(setup).id for _ in range(8)]
    showtime_id, movie_id = showtime.id, showtime.movie_id
    barrier = threading.Barrier(len(buyer_ids))

    def attempt(buyer_id):
        session = session_factory()
        try:
            barrier.wait()
            reserve_and_book(
                session,
                buyer_id=buyer_id,
                showtime_id=showtime_id,
                movie_id=movie_id,
                seat_ids=["A1", "A2"],
            )
            return "ok"
        except SeatConflict as exc:
            assert exc.seat_ids == ["A1", "A2"]
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(buyer_ids)) as pool:
        outcomes = list(pool.map(attempt, buyer_ids))

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == len(buyer_ids) - 1
    assert _reload(setup, showtime_id).seats_reserved == ["A1", "A2"]
    assert setup.query(Booking).count() == 1
    setup.close()


def test_failed_reread_after_stale_write_is_storage_error(session_factory, monkeypatch):
    setup = session_factory()
    movie = make_movie(setup)
    showtime = make_showtime(setup, movie)
    early, late = make_user(setup), make_user(setup)

    stale_db = session_factory()
    stale = stale_db.query(Showtime).filter(Showtime.id == showtime.id).one()
    _book(setup, early, showtime, ["C1"])
    monkeypatch.setattr(booking_service, "_lock_showtime", lambda db, showtime_id: stale)

    def reread_fails(db, showtime_id, seats):
        raise OperationalError("SELECT showtimes", {}, Exception("connection lost"))

    monkeypatch.setattr(booking_service, "_conflicts_after_stale_write", reread_fails)

    with pytest.raises(StorageUnavailable):
        _book(stale_db, late, showtime, ["C1"])

    assert _reload(setup, showtime.id).seats_reserved == ["C1"]
    stale_db.close()
    setup.close()


def test_failed_reload_after_commit_is_storage_error(db, buyer, showtime, monkeypatch):
    def refresh_fails(instance, *args, **kwargs):
        raise OperationalError("SELECT bookings", {}, Exception("connection lost"))

    monkeypatch.setattr(db, "refresh", refresh_fails)

    with pytest.raises(StorageUnavailable):
        _book(db, buyer, showtime, ["F1"])

    # The booking itself was committed before the reload failed.
    assert _reload(db, showtime.id).seats_reserved == ["F1"]
    assert db.query(Booking).count() == 1
