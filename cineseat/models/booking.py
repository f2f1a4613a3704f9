
import enum
import uuid
from decimal import Decimal
from sqlalchemy import Column, String, DateTime, func, DECIMAL, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from cineseat.db.session import Base
from cineseat.models.showtime import JSONDocument

MAX_DECLARED_TOTAL = Decimal("99999999.99")  # largest DECIMAL(10, 2)

class BookingStatus(str, enum.Enum):
    paid = "paid"
    redeemed = "redeemed"

class Booking(Base):
    __tablename__ = "bookings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    movie_id = Column(UUID(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    showtime_id = Column(UUID(as_uuid=True), ForeignKey("showtimes.id"), nullable=False, index=True)
    seats = Column(JSONDocument, nullable=False) # ["B3", "B4"], never changes after creation
    seat_type = Column(String(10), nullable=False) # Classic, Prime, Superior, Mixed
    total = Column(DECIMAL(10, 2), nullable=False)
    declared_total = Column(DECIMAL(10, 2), nullable=True) # what the client showed, informational
    status = Column(String(20), nullable=False, default=BookingStatus.paid.value, index=True) # paid, redeemed
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    redeemed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User")
    movie = relationship("Movie")
    showtime = relationship("Showtime", back_populates="bookings")

    @property
    def qr_payload(self) -> str:
        """Ticket QR codes encode the booking id; the door scanner decodes it back."""
        return str(self.id)
