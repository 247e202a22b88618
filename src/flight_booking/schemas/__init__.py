"""
Pydantic schemas for API request/response validation
"""
from flight_booking.schemas.flight import (
    FlightResponse,
    FlightListResponse,
    PriceSnapshot,
    PriceQuote,
    SeatResponse,
    SeatMapResponse,
)
from flight_booking.schemas.booking import (
    BookingCreate,
    FlightSummary,
    BookingResponse,
    BookingListResponse,
    TicketResponse,
    SuccessResponse,
)
from flight_booking.schemas.wallet import (
    AmountRequest,
    TransferRequest,
    TransactionResponse,
    WalletResponse,
    BalanceResponse,
    TransactionListResponse,
)

__all__ = [
    # Flights
    "FlightResponse",
    "FlightListResponse",
    "PriceSnapshot",
    "PriceQuote",
    "SeatResponse",
    "SeatMapResponse",
    # Bookings
    "BookingCreate",
    "FlightSummary",
    "BookingResponse",
    "BookingListResponse",
    "TicketResponse",
    "SuccessResponse",
    # Wallet
    "AmountRequest",
    "TransferRequest",
    "TransactionResponse",
    "WalletResponse",
    "BalanceResponse",
    "TransactionListResponse",
]
