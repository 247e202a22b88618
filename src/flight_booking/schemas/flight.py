"""Pydantic schemas for Flight resources"""
from datetime import date, datetime
from typing import List

from flight_booking.schemas.base import CamelModel


class FlightResponse(CamelModel):
    id: int
    flight_number: str
    airline: str
    departure_city: str
    arrival_city: str
    departure_time: datetime
    arrival_time: datetime
    base_price: int
    current_price: int
    total_seats: int
    available_seats: int
    last_price_update: datetime
    is_surge_pricing: bool


class FlightListResponse(CamelModel):
    flights: List[FlightResponse]
    total: int


class PriceSnapshot(CamelModel):
    flight_id: int
    current_price: int
    base_price: int
    last_price_update: datetime

    @classmethod
    def from_flight(cls, flight):
        return cls(
            flight_id=flight.id,
            current_price=flight.current_price,
            base_price=flight.base_price,
            last_price_update=flight.last_price_update,
        )


class PriceQuote(PriceSnapshot):
    is_surge_pricing: bool

    @classmethod
    def from_flight(cls, flight):
        return cls(
            flight_id=flight.id,
            current_price=flight.current_price,
            base_price=flight.base_price,
            last_price_update=flight.last_price_update,
            is_surge_pricing=flight.is_surge_pricing,
        )


class SeatResponse(CamelModel):
    seat_number: str
    is_available: bool


class SeatMapResponse(CamelModel):
    flight_id: int
    journey_date: date
    seats: List[SeatResponse]
    available: int
