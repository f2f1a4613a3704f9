
from cineseat.schemas.common import PaginatedResponse, ErrorResponse, SeatsUnavailableError
from cineseat.schemas.user import User, UserCreate, AdminCreate, UserUpdate, UserSummary, Token
from cineseat.schemas.movie import Movie, MovieCreate, MovieUpdate, MovieSummary
from cineseat.schemas.showtime import (
    Showtime, ShowtimeCreate, ShowtimeUpdate, ShowtimeWithMovie,
    ShowtimeBulkCreate, BulkCreateResult, PriceMap, SeatMapResponse,
)
from cineseat.schemas.booking import (
    Booking, BookingCreate, AdminBooking, RedemptionResponse,
)
