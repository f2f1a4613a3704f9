
import uuid
from sqlalchemy import Column, Date, Time, Integer, DateTime, ForeignKey, UniqueConstraint, JSON, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from cineseat.db.session import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")

class Showtime(Base):
    __tablename__ = "showtimes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(UUID(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    show_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False) # venue-local, no zone stored
    price_map = Column(JSONDocument, nullable=False) # {"Classic": "800", "Prime": "1200", "Superior": "1500"}
    # Written only by services.booking.reserve_and_book
    seats_reserved = Column(JSONDocument, nullable=False, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("movie_id", "show_date", "start_time", name="uq_showtime_movie_date_time"),
    )
    __mapper_args__ = {"version_id_col": version}

    # Relationships
    movie = relationship("Movie", back_populates="showtimes")
    bookings = relationship("Booking", back_populates="showtime")
