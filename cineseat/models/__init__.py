
from cineseat.models.user import User
from cineseat.models.movie import Movie
from cineseat.models.showtime import Showtime
from cineseat.models.booking import Booking, BookingStatus
