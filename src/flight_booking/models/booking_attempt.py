"""
BookingAttempt model - demand signal log feeding surge pricing
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base


class BookingAttempt(Base):
    __tablename__ = "booking_attempts"

    id = Column(Integer, primary_key=True, index=True)
    flight_id = Column(Integer, ForeignKey("flights.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    flight = relationship("Flight", back_populates="attempts")

    def __repr__(self):
        return f"<BookingAttempt(flight_id={self.flight_id}, user_id={self.user_id}, at={self.created_at})>"
