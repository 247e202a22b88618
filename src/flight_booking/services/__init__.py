"""
Services package exports
"""
from flight_booking.services.errors import (
    FlightBookingError,
    NotFoundError,
    InsufficientInventoryError,
    SeatConflictError,
    InsufficientFundsError,
    ForbiddenError,
    AlreadyCancelledError,
    InvalidInputError,
)
from flight_booking.services.pricing_service import PricingService, evaluate_price, surge_price
from flight_booking.services.wallet_service import WalletService
from flight_booking.services.booking_service import (
    BookingService,
    PassengerInfo,
    quote_fare,
    refund_for,
)
from flight_booking.services.flight_service import FlightService
from flight_booking.services.idempotency import idempotency_service

__all__ = [
    "FlightBookingError",
    "NotFoundError",
    "InsufficientInventoryError",
    "SeatConflictError",
    "InsufficientFundsError",
    "ForbiddenError",
    "AlreadyCancelledError",
    "InvalidInputError",
    "PricingService",
    "evaluate_price",
    "surge_price",
    "WalletService",
    "BookingService",
    "PassengerInfo",
    "quote_fare",
    "refund_for",
    "FlightService",
    "idempotency_service",
]
