"""Bookings API endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.api.dependencies import get_current_user_id
from flight_booking.core.database import get_db
from flight_booking.middleware.rate_limiter import limiter
from flight_booking.models.booking import BookingStatus
from flight_booking.schemas import (
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    SuccessResponse,
    TicketResponse,
)
from flight_booking.services import BookingService, PassengerInfo, idempotency_service

router = APIRouter()


@router.post("/bookings", response_model=BookingResponse, status_code=201)
@limiter.limit("10/minute")
async def create_booking(
    request: Request,
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    idempotency_key: Optional[str] = Header(None, alias="X-Idempotency-Key"),
    db: AsyncSession = Depends(get_db),
):
    """
    Book seats on a flight, paying from the user's wallet

    Headers:
    - X-Idempotency-Key: optional; retries with the same key return the
      original booking instead of charging again
    """
    key = None
    if idempotency_key:
        key = idempotency_service.generate_key(user_id, "create_booking", idempotency_key)
        existing_result = await idempotency_service.check_operation(key)
        if existing_result:
            return BookingResponse.model_validate(existing_result)

        if not await idempotency_service.lock_operation(key):
            raise HTTPException(
                status_code=409,
                detail="Booking operation already in progress. Please wait."
            )

    try:
        booking = await BookingService.create_booking(
            db,
            user_id=user_id,
            flight_id=booking_data.flight_id,
            passenger=PassengerInfo(
                name=booking_data.passenger_name,
                email=booking_data.passenger_email,
                phone=booking_data.passenger_phone,
            ),
            journey_date=booking_data.journey_date,
            seat_numbers=booking_data.seat_numbers,
            passenger_count=booking_data.passenger_count,
        )
        response = BookingResponse.from_booking(booking)

        if key:
            await idempotency_service.store_result(key, response.model_dump(mode="json", by_alias=True))
        return response
    finally:
        if key:
            await idempotency_service.release_lock(key)


@router.get("/bookings", response_model=BookingListResponse)
@limiter.limit("30/minute")
async def list_user_bookings(
    request: Request,
    user_id: int = Depends(get_current_user_id),
    status: Optional[BookingStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's bookings, newest first"""
    bookings = await BookingService.get_user_bookings(db, user_id=user_id, status=status)
    return BookingListResponse(
        bookings=[BookingResponse.from_booking(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
@limiter.limit("60/minute")
async def get_booking(
    request: Request,
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingService.get_booking(db, booking_id=booking_id, user_id=user_id)
    return BookingResponse.from_booking(booking)


@router.put("/bookings/{booking_id}/cancel", response_model=SuccessResponse)
@limiter.limit("10/minute")
async def cancel_booking(
    request: Request,
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking; 90% of the amount paid is refunded to the wallet"""
    await BookingService.cancel_booking(db, booking_id=booking_id, user_id=user_id)
    return SuccessResponse()


@router.get("/bookings/{booking_id}/ticket", response_model=TicketResponse)
@limiter.limit("30/minute")
async def get_ticket(
    request: Request,
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    ticket = await BookingService.get_ticket(db, booking_id=booking_id, user_id=user_id)
    return TicketResponse(**ticket)
