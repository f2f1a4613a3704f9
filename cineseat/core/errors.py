
from typing import Iterable, List


class CineSeatError(Exception):
    """Base class for booking-domain failures surfaced to the API boundary."""

    error = "cineseat_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class SeatConfigurationError(CineSeatError):
    """A seat row or price category outside the fixed 8x10 grid."""

    error = "seat_configuration_error"
    status_code = 500


class InvalidSeatSelection(CineSeatError):
    error = "invalid_seat_selection"
    status_code = 422


class ShowtimeNotFound(CineSeatError):
    error = "showtime_not_found"
    status_code = 404

    def __init__(self, showtime_id):
        super().__init__(f"Showtime {showtime_id} not found")
        self.showtime_id = showtime_id


class ShowtimeExpired(CineSeatError):
    error = "showtime_expired"
    status_code = 409

    def __init__(self, showtime_id):
        super().__init__("This showtime has already started. Please pick another showtime.")
        self.showtime_id = showtime_id


class SeatConflict(CineSeatError):
    error = "seats_unavailable"
    status_code = 409

    def __init__(self, seat_ids: Iterable[str]):
        self.seat_ids: List[str] = list(seat_ids)
        super().__init__(f"Seat(s) already reserved: {', '.join(self.seat_ids)}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["unavailable_seat_ids"] = self.seat_ids
        return data


class BookingNotFound(CineSeatError):
    error = "booking_not_found"
    status_code = 404

    def __init__(self, booking_id):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class StorageUnavailable(CineSeatError):
    error = "storage_unavailable"
    status_code = 503

    def __init__(self, message: str = "Booking storage is unavailable, please try again"):
        super().__init__(message)
