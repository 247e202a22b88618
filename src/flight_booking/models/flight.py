"""
Flight model - seat inventory and demand-driven price state
"""
from enum import Enum as PyEnum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, Integer, String
from sqlalchemy.orm import relationship

from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base


class PriceState(PyEnum):
    """Whether a surge is currently applied to the flight"""
    BASELINE = "BASELINE"
    SURGED = "SURGED"


class Flight(Base):
    __tablename__ = "flights"
    __table_args__ = (
        CheckConstraint('available_seats >= 0', name='ck_flight_seats_non_negative'),
        CheckConstraint('available_seats <= total_seats', name='ck_flight_seats_le_total'),
        CheckConstraint('current_price >= base_price', name='ck_flight_price_floor'),
    )

    id = Column(Integer, primary_key=True, index=True)
    flight_number = Column(String(20), nullable=False, unique=True)
    airline = Column(String(100), nullable=False)
    departure_city = Column(String(100), nullable=False, index=True)
    arrival_city = Column(String(100), nullable=False, index=True)
    departure_time = Column(DateTime, nullable=False, index=True)
    arrival_time = Column(DateTime, nullable=False)
    base_price = Column(Integer, nullable=False)
    current_price = Column(Integer, nullable=False)
    price_state = Column(Enum(PriceState), nullable=False, default=PriceState.BASELINE)
    last_price_update = Column(DateTime, nullable=False, default=utcnow)
    price_version = Column(Integer, nullable=False, default=0)  # Optimistic lock for price changes
    total_seats = Column(Integer, nullable=False, default=100)
    available_seats = Column(Integer, nullable=False, default=100)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    attempts = relationship("BookingAttempt", back_populates="flight", cascade="all, delete-orphan")
    bookings = relationship("Booking", back_populates="flight")

    def __repr__(self):
        return (f"<Flight(id={self.id}, number='{self.flight_number}', "
                f"price={self.current_price}/{self.base_price}, seats={self.available_seats})>")

    @property
    def is_surge_pricing(self) -> bool:
        return self.price_state == PriceState.SURGED

    @property
    def is_sold_out(self) -> bool:
        return self.available_seats <= 0
