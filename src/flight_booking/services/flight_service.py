"""
Flight Service - read-only flight queries
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.core.config import settings
from flight_booking.models import Flight
from flight_booking.services.booking_service import BookingService
from flight_booking.services.pricing_service import PricingService
from flight_booking.services.seat_map import seat_labels


def _contains_pattern(term: str) -> str:
    """LIKE pattern matching `term` literally anywhere in the value"""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class FlightService:
    """Service for listing, searching and inspecting flights"""

    @staticmethod
    async def list_flights(db: AsyncSession) -> List[Flight]:
        result = await db.execute(select(Flight).order_by(Flight.departure_time))
        return list(result.scalars().all())

    @staticmethod
    async def get_flight(db: AsyncSession, flight_id: int) -> Flight:
        return await PricingService.get_flight(db, flight_id)

    @staticmethod
    async def search_flights(
        db: AsyncSession,
        departure: str,
        arrival: str,
        travel_date: date,
        passengers: int = 1,
        now: Optional[datetime] = None,
    ) -> List[Flight]:
        """
        Flights between two cities departing on a given day with enough seats.

        City matching is a case-insensitive substring match. Each result's
        price is refreshed before it is returned.
        """
        day_start = datetime.combine(travel_date, time.min)
        query = (
            select(Flight.id)
            .where(
                Flight.departure_city.ilike(_contains_pattern(departure), escape="\\"),
                Flight.arrival_city.ilike(_contains_pattern(arrival), escape="\\"),
                Flight.departure_time >= day_start,
                Flight.departure_time < day_start + timedelta(days=1),
                Flight.available_seats >= passengers,
            )
            .order_by(Flight.departure_time)
            .limit(settings.FLIGHT_SEARCH_LIMIT)
        )
        result = await db.execute(query)
        flight_ids = list(result.scalars().all())

        return [await PricingService.refresh_price(db, flight_id, now=now) for flight_id in flight_ids]

    @staticmethod
    async def seat_map(db: AsyncSession, flight_id: int, journey_date: date) -> List[dict]:
        """Every seat label on the flight with whether it's held on the journey date"""
        flight = await PricingService.get_flight(db, flight_id)
        held = await BookingService.held_seats(db, flight_id, journey_date)
        return [
            {"seat_number": label, "is_available": label not in held}
            for label in seat_labels(flight.total_seats)
        ]
