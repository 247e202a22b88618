"""
SQLAlchemy models for the flight booking ledger

Import all models here for easy access and to ensure proper relationship setup.
"""
from flight_booking.core.database import Base

from flight_booking.models.flight import Flight, PriceState
from flight_booking.models.booking_attempt import BookingAttempt
from flight_booking.models.booking import Booking, BookingStatus
from flight_booking.models.booking_seat import BookingSeat
from flight_booking.models.wallet import Wallet
from flight_booking.models.wallet_transaction import WalletTransaction, TransactionKind

__all__ = [
    "Base",
    "Flight",
    "PriceState",
    "BookingAttempt",
    "Booking",
    "BookingStatus",
    "BookingSeat",
    "Wallet",
    "WalletTransaction",
    "TransactionKind",
]
