"""
Booking model - a paid seat reservation identified by its PNR
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base


class BookingStatus(PyEnum):
    """Enum for booking status"""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    pnr = Column(String(6), nullable=False, unique=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    flight_id = Column(Integer, ForeignKey("flights.id", ondelete="CASCADE"), nullable=False, index=True)
    passenger_name = Column(String(200), nullable=False)
    passenger_email = Column(String(320), nullable=False)
    passenger_phone = Column(String(32), nullable=False)
    passenger_count = Column(Integer, nullable=False, default=1)
    journey_date = Column(Date, nullable=False)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED, index=True)
    # Price snapshots, immutable after creation
    unit_price = Column(Integer, nullable=False)
    tax_per_seat = Column(Integer, nullable=False)
    amount_paid = Column(Integer, nullable=False)
    refund_amount = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    flight = relationship("Flight", back_populates="bookings")
    seats = relationship("BookingSeat", back_populates="booking", cascade="all, delete-orphan",
                         order_by="BookingSeat.id")

    def __repr__(self):
        return (f"<Booking(id={self.id}, pnr='{self.pnr}', flight_id={self.flight_id}, "
                f"status='{self.status.value}', paid={self.amount_paid})>")

    @property
    def seat_numbers(self):
        return [seat.seat_number for seat in self.seats]
