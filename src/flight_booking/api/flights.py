"""Flights API endpoints - search, price quotes and demand signals"""
from datetime import date

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.api.dependencies import get_current_user_id
from flight_booking.core.database import get_db
from flight_booking.middleware.rate_limiter import limiter
from flight_booking.schemas import (
    FlightListResponse,
    FlightResponse,
    PriceQuote,
    PriceSnapshot,
    SeatMapResponse,
    SeatResponse,
)
from flight_booking.services import FlightService, PricingService

router = APIRouter()


@router.get("/flights", response_model=FlightListResponse)
@limiter.limit("60/minute")
async def list_flights(request: Request, db: AsyncSession = Depends(get_db)):
    """All flights ordered by departure time"""
    flights = await FlightService.list_flights(db)
    return FlightListResponse(
        flights=[FlightResponse.model_validate(f) for f in flights],
        total=len(flights),
    )


@router.get("/flights/search", response_model=FlightListResponse)
@limiter.limit("30/minute")
async def search_flights(
    request: Request,
    departure: str = Query(..., min_length=1, description="Departure city"),
    arrival: str = Query(..., min_length=1, description="Arrival city"),
    travel_date: date = Query(..., alias="date", description="Departure date (YYYY-MM-DD)"),
    passengers: int = Query(1, ge=1, le=10),
    db: AsyncSession = Depends(get_db),
):
    """
    Search flights by route and date

    Returns at most 10 flights with enough free seats, each with a freshly
    evaluated price.
    """
    flights = await FlightService.search_flights(
        db,
        departure=departure,
        arrival=arrival,
        travel_date=travel_date,
        passengers=passengers,
    )
    return FlightListResponse(
        flights=[FlightResponse.model_validate(f) for f in flights],
        total=len(flights),
    )


@router.get("/flights/{flight_id}", response_model=FlightResponse)
@limiter.limit("60/minute")
async def get_flight(request: Request, flight_id: int, db: AsyncSession = Depends(get_db)):
    flight = await FlightService.get_flight(db, flight_id)
    return FlightResponse.model_validate(flight)


@router.get("/flights/{flight_id}/price", response_model=PriceQuote)
@limiter.limit("60/minute")
async def track_price(request: Request, flight_id: int, db: AsyncSession = Depends(get_db)):
    """Refresh and return the current price of a flight"""
    flight = await PricingService.refresh_price(db, flight_id)
    return PriceQuote.from_flight(flight)


@router.post("/flights/{flight_id}/attempt", response_model=PriceSnapshot)
@limiter.limit("20/minute")
async def record_booking_attempt(
    request: Request,
    flight_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Record a booking attempt (demand signal), then refresh the price"""
    await PricingService.record_attempt(db, flight_id, user_id)
    flight = await PricingService.refresh_price(db, flight_id)
    return PriceSnapshot.from_flight(flight)


@router.get("/flights/{flight_id}/seats", response_model=SeatMapResponse)
@limiter.limit("60/minute")
async def get_seat_map(
    request: Request,
    flight_id: int,
    journey_date: date = Query(..., alias="journeyDate"),
    db: AsyncSession = Depends(get_db),
):
    """Seat map for a journey date with held seats marked unavailable"""
    seats = await FlightService.seat_map(db, flight_id, journey_date)
    return SeatMapResponse(
        flight_id=flight_id,
        journey_date=journey_date,
        seats=[SeatResponse(**seat) for seat in seats],
        available=sum(1 for seat in seats if seat["is_available"]),
    )
