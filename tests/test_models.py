from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import configure_mappers
from sqlalchemy.schema import CreateTable

from cineseat.db.base import Base
from cineseat.models import Booking, Showtime


def test_mappers_configure():
    configure_mappers()
    assert Showtime.__mapper__.version_id_col is Showtime.__table__.c.version
    assert Booking.showtime.property.back_populates == "bookings"


def test_postgres_ddl_compiles():
    dialect = postgresql.dialect()
    ddl = {name: str(CreateTable(table).compile(dialect=dialect)) for name, table in Base.metadata.tables.items()}

    assert set(ddl) == {"users", "movies", "showtimes", "bookings"}
    assert "seats_reserved JSONB NOT NULL" in ddl["showtimes"]
    assert "uq_showtime_movie_date_time" in ddl["showtimes"]
    assert "total DECIMAL(10, 2) NOT NULL" in ddl["bookings"]
