"""Pydantic schemas for Booking resources"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field, model_validator

from flight_booking.models.booking import BookingStatus
from flight_booking.schemas.base import CamelModel


class BookingCreate(CamelModel):
    flight_id: int = Field(..., gt=0)
    passenger_name: str = Field(..., min_length=1, max_length=200)
    passenger_email: EmailStr
    passenger_phone: str = Field(..., min_length=5, max_length=32)
    seat_numbers: Optional[List[str]] = Field(None, max_length=10)
    passenger_count: Optional[int] = Field(None, ge=1, le=10)
    journey_date: date

    @model_validator(mode="after")
    def check_seats_match_count(self):
        if self.seat_numbers and self.passenger_count is not None \
                and len(self.seat_numbers) != self.passenger_count:
            raise ValueError("passengerCount must match the number of seatNumbers")
        return self


class FlightSummary(CamelModel):
    id: int
    flight_number: str
    airline: str
    departure_city: str
    arrival_city: str
    departure_time: datetime
    arrival_time: datetime


class BookingResponse(CamelModel):
    id: int
    pnr: str
    user_id: int
    flight_id: int
    passenger_name: str
    passenger_email: str
    passenger_phone: str
    passenger_count: int
    seat_numbers: List[str] = Field(default_factory=list)
    journey_date: date
    status: BookingStatus
    unit_price: int
    tax_per_seat: int
    amount_paid: int
    refund_amount: Optional[int] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    flight: Optional[FlightSummary] = None

    @classmethod
    def from_booking(cls, booking):
        """Convert Booking ORM model (seats and flight loaded) to response"""
        return cls(
            id=booking.id,
            pnr=booking.pnr,
            user_id=booking.user_id,
            flight_id=booking.flight_id,
            passenger_name=booking.passenger_name,
            passenger_email=booking.passenger_email,
            passenger_phone=booking.passenger_phone,
            passenger_count=booking.passenger_count,
            seat_numbers=booking.seat_numbers,
            journey_date=booking.journey_date,
            status=booking.status,
            unit_price=booking.unit_price,
            tax_per_seat=booking.tax_per_seat,
            amount_paid=booking.amount_paid,
            refund_amount=booking.refund_amount,
            created_at=booking.created_at,
            cancelled_at=booking.cancelled_at,
            flight=FlightSummary.model_validate(booking.flight) if booking.flight else None,
        )


class BookingListResponse(CamelModel):
    bookings: List[BookingResponse]
    total: int


class TicketResponse(CamelModel):
    pnr: str
    passenger_name: str
    flight_number: str
    airline: str
    departure_city: str
    arrival_city: str
    departure_time: datetime
    arrival_time: datetime
    seat_numbers: List[str]
    passenger_count: int
    journey_date: date
    status: BookingStatus
    amount_paid: int


class SuccessResponse(CamelModel):
    success: bool = True
    data: dict = Field(default_factory=dict)
