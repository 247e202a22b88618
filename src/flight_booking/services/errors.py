"""
Service-level error taxonomy

Every error carries the HTTP status it maps to, a stable machine-readable
code and a context dict that callers can show to the user.
"""
from typing import Any, Dict, Iterable


class FlightBookingError(Exception):
    """Base exception for pricing, booking and wallet errors"""
    status_code = 400
    error_code = "booking_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class NotFoundError(FlightBookingError):
    """Raised when a flight, booking or wallet doesn't exist"""
    status_code = 404
    error_code = "not_found"


class InsufficientInventoryError(FlightBookingError):
    """Raised when a flight has fewer seats than requested"""
    status_code = 409
    error_code = "insufficient_inventory"

    def __init__(self, requested: int, available: int):
        super().__init__(
            f"Only {available} seat(s) available, {requested} requested. Choose fewer seats.",
            requested=requested,
            available=available,
        )


class SeatConflictError(FlightBookingError):
    """Raised when explicitly requested seats are already held"""
    status_code = 409
    error_code = "seat_conflict"

    def __init__(self, seats: Iterable[str]):
        seats = sorted(seats)
        super().__init__(
            f"Seat(s) {', '.join(seats)} already booked. Choose different seats.",
            seats=seats,
        )


class InsufficientFundsError(FlightBookingError):
    """Raised when a wallet cannot cover a debit"""
    status_code = 402
    error_code = "insufficient_funds"

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient wallet balance. Required: {required}, Available: {available}. "
            f"Top up your wallet to continue.",
            required=required,
            available=available,
        )


class ForbiddenError(FlightBookingError):
    """Raised when a user acts on a booking they don't own"""
    status_code = 403
    error_code = "forbidden"


class AlreadyCancelledError(FlightBookingError):
    """Raised when cancelling a booking twice"""
    status_code = 409
    error_code = "already_cancelled"


class InvalidInputError(FlightBookingError):
    """Raised for malformed input that passed schema validation"""
    status_code = 422
    error_code = "validation_error"
