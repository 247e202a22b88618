"""
BookingSeat model - seat labels held by a booking on a journey date

`is_held` is True while the booking holds the seat and NULL once released.
Because NULLs never collide in a unique constraint, the constraint below
allows one live hold per seat while keeping released rows as history.
"""
from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from flight_booking.core.database import Base


class BookingSeat(Base):
    __tablename__ = "booking_seats"
    __table_args__ = (
        UniqueConstraint('flight_id', 'journey_date', 'seat_number', 'is_held',
                         name='uq_booking_seat_hold'),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    flight_id = Column(Integer, ForeignKey("flights.id", ondelete="CASCADE"), nullable=False)
    journey_date = Column(Date, nullable=False)
    seat_number = Column(String(8), nullable=False)
    is_held = Column(Boolean, nullable=True, default=True)

    booking = relationship("Booking", back_populates="seats")

    def __repr__(self):
        return f"<BookingSeat(booking_id={self.booking_id}, seat='{self.seat_number}', held={self.is_held})>"
