"""
Booking Service - turns a priced flight into a paid booking

create_booking and cancel_booking each run as one database transaction:
the wallet movement, the seat counter and the seat holds commit together
or not at all.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from flight_booking.core.clock import utcnow
from flight_booking.core.config import settings
from flight_booking.core.metrics import (
    booking_creation_duration_seconds,
    booking_rejections_total,
    bookings_cancelled_total,
    bookings_created_total,
    track_time,
    wallet_transactions_total,
)
from flight_booking.models import Booking, BookingSeat, BookingStatus, Flight, TransactionKind
from flight_booking.services.errors import (
    AlreadyCancelledError,
    FlightBookingError,
    ForbiddenError,
    InsufficientFundsError,
    InsufficientInventoryError,
    InvalidInputError,
    NotFoundError,
    SeatConflictError,
)
from flight_booking.services.pnr import generate_unique_pnr
from flight_booking.services.seat_map import invalid_seats, normalize_seat, pick_free_seats
from flight_booking.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

TAX_PERCENT = 15
REFUND_PERCENT = 90


def _percent_half_up(amount: int, percent: int) -> int:
    """amount * percent / 100 rounded half up, in integer arithmetic"""
    return (amount * percent + 50) // 100


@dataclass(frozen=True)
class Fare:
    unit_price: int
    tax_per_seat: int
    passenger_count: int

    @property
    def total_amount(self) -> int:
        return self.passenger_count * (self.unit_price + self.tax_per_seat)


def quote_fare(unit_price: int, passenger_count: int) -> Fare:
    return Fare(
        unit_price=unit_price,
        tax_per_seat=_percent_half_up(unit_price, TAX_PERCENT),
        passenger_count=passenger_count,
    )


def refund_for(amount_paid: int) -> int:
    """Cancellation refund: fixed 10% penalty"""
    return _percent_half_up(amount_paid, REFUND_PERCENT)


@dataclass
class PassengerInfo:
    name: str
    email: str
    phone: str


class BookingService:
    """Service for creating, cancelling and reading bookings"""

    @staticmethod
    def _resolve_seat_request(
        seat_numbers: Optional[Sequence[str]],
        passenger_count: Optional[int],
    ) -> tuple:
        """Normalise the request into (explicit seats or None, passenger count)"""
        seats = [normalize_seat(s) for s in seat_numbers] if seat_numbers else None

        if seats:
            if len(set(seats)) != len(seats):
                raise InvalidInputError("Duplicate seat numbers in request", seats=seats)
            if passenger_count is not None and passenger_count != len(seats):
                raise InvalidInputError(
                    f"Passenger count {passenger_count} doesn't match {len(seats)} seat(s) requested",
                    passenger_count=passenger_count,
                    seats=seats,
                )
            count = len(seats)
        else:
            count = passenger_count if passenger_count is not None else 1

        if count < 1:
            raise InvalidInputError("At least one passenger is required")
        if count > settings.MAX_SEATS_PER_BOOKING:
            raise InvalidInputError(
                f"Cannot book more than {settings.MAX_SEATS_PER_BOOKING} seats at once",
                passenger_count=count,
            )
        return seats, count

    @staticmethod
    async def held_seats(db: AsyncSession, flight_id: int, journey_date: date) -> set:
        """Seat labels held by live bookings on this flight and journey date"""
        query = select(BookingSeat.seat_number).where(
            BookingSeat.flight_id == flight_id,
            BookingSeat.journey_date == journey_date,
            BookingSeat.is_held.is_(True),
        )
        result = await db.execute(query)
        return set(result.scalars().all())

    @staticmethod
    async def _pnr_taken(db: AsyncSession, code: str) -> bool:
        result = await db.execute(select(Booking.id).where(Booking.pnr == code))
        return result.first() is not None

    @staticmethod
    async def _load(db: AsyncSession, booking_id: int) -> Booking:
        query = (
            select(Booking)
            .where(Booking.id == booking_id)
            .options(selectinload(Booking.seats), selectinload(Booking.flight))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one()

    @staticmethod
    @track_time(booking_creation_duration_seconds)
    async def create_booking(
        db: AsyncSession,
        user_id: int,
        flight_id: int,
        passenger: PassengerInfo,
        journey_date: date,
        seat_numbers: Optional[Sequence[str]] = None,
        passenger_count: Optional[int] = None,
    ) -> Booking:
        """
        Create a confirmed booking.

        Checks, in order: seat request, flight exists, enough seats, explicit
        seats free, wallet covers the fare. Then debits the wallet, decrements
        the seat counter and writes the booking with a fresh PNR, all in one
        transaction.
        """
        seats, count = BookingService._resolve_seat_request(seat_numbers, passenger_count)

        # Unknown flights are rejected before the wallet is created
        if await db.get(Flight, flight_id) is None:
            booking_rejections_total.labels(reason=NotFoundError.error_code).inc()
            raise NotFoundError(f"Flight not found with id {flight_id}", flight_id=flight_id)

        # Wallet creation commits on its own, so it must precede staged writes
        wallet = await WalletService.get_or_create_wallet(db, user_id)

        try:
            flight = await db.get(Flight, flight_id, populate_existing=True)
            if not flight:
                raise NotFoundError(f"Flight not found with id {flight_id}", flight_id=flight_id)

            if flight.available_seats < count:
                raise InsufficientInventoryError(requested=count, available=flight.available_seats)

            held = await BookingService.held_seats(db, flight_id, journey_date)
            if seats:
                unknown = invalid_seats(seats, flight.total_seats)
                if unknown:
                    raise InvalidInputError(
                        f"Seat(s) {', '.join(sorted(unknown))} don't exist on flight {flight.flight_number}",
                        seats=sorted(unknown),
                    )
                conflicts = held.intersection(seats)
                if conflicts:
                    raise SeatConflictError(conflicts)
            else:
                seats = pick_free_seats(flight.total_seats, held, count)
                if len(seats) < count:
                    raise InsufficientInventoryError(requested=count, available=len(seats))

            fare = quote_fare(flight.current_price, count)
            if wallet.balance < fare.total_amount:
                raise InsufficientFundsError(required=fare.total_amount, available=wallet.balance)

            pnr = await generate_unique_pnr(lambda code: BookingService._pnr_taken(db, code))

            # 1. Debit the wallet (conditional on balance)
            entry = await WalletService.debit(
                db,
                wallet,
                fare.total_amount,
                f"Flight booking - {flight.flight_number} - Seat(s) {', '.join(seats)}",
            )

            # 2. Decrement seats (conditional on availability)
            result = await db.execute(
                update(Flight)
                .where(Flight.id == flight_id, Flight.available_seats >= count)
                .values(available_seats=Flight.available_seats - count, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await db.refresh(flight, ["available_seats"])
                raise InsufficientInventoryError(requested=count, available=flight.available_seats)

            # 3. Write the booking and its seat holds
            booking = Booking(
                pnr=pnr,
                user_id=user_id,
                flight_id=flight_id,
                passenger_name=passenger.name,
                passenger_email=passenger.email,
                passenger_phone=passenger.phone,
                passenger_count=count,
                journey_date=journey_date,
                status=BookingStatus.CONFIRMED,
                unit_price=fare.unit_price,
                tax_per_seat=fare.tax_per_seat,
                amount_paid=fare.total_amount,
                created_at=utcnow(),
            )
            db.add(booking)
            await db.flush()

            for seat in seats:
                db.add(BookingSeat(
                    booking_id=booking.id,
                    flight_id=flight_id,
                    journey_date=journey_date,
                    seat_number=seat,
                    is_held=True,
                ))
            entry.booking_id = booking.id
            try:
                await db.flush()
            except IntegrityError:
                # A concurrent booking grabbed one of these seats after our check
                raise SeatConflictError(seats)

            await db.commit()
        except FlightBookingError as e:
            await db.rollback()
            booking_rejections_total.labels(reason=e.error_code).inc()
            logger.warning(
                f"Booking rejected for flight {flight_id}: {e.message}",
                extra={'user_id': user_id, 'flight_id': flight_id},
            )
            raise
        except Exception:
            await db.rollback()
            raise

        bookings_created_total.inc()
        wallet_transactions_total.labels(kind=TransactionKind.DEBIT.value).inc()
        logger.info(
            f"Booking {pnr} confirmed: {count} seat(s) on flight {flight_id}, paid {fare.total_amount}",
            extra={'user_id': user_id, 'flight_id': flight_id, 'booking_id': booking.id, 'pnr': pnr},
        )
        return await BookingService._load(db, booking.id)

    @staticmethod
    async def cancel_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
        """
        Cancel a booking: flip status, release seats and credit a 90% refund.

        The status flip is conditional on the booking not being cancelled
        yet, so concurrent cancels refund at most once.
        """
        try:
            booking = await db.get(Booking, booking_id, populate_existing=True)
            if not booking:
                raise NotFoundError(f"Booking not found with id {booking_id}", booking_id=booking_id)
            if booking.user_id != user_id:
                raise ForbiddenError("Not authorized to cancel this booking", booking_id=booking_id)
            if booking.status == BookingStatus.CANCELLED:
                raise AlreadyCancelledError("Booking is already cancelled", booking_id=booking_id)

            # Read everything needed before staging writes
            pnr = booking.pnr
            flight_id = booking.flight_id
            count = booking.passenger_count
            refund = refund_for(booking.amount_paid)
            now = utcnow()
        except FlightBookingError as e:
            await db.rollback()
            booking_rejections_total.labels(reason=e.error_code).inc()
            raise

        # Wallet creation commits on its own, so it must precede staged writes
        wallet = await WalletService.get_or_create_wallet(db, user_id)

        try:
            result = await db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status != BookingStatus.CANCELLED)
                .values(status=BookingStatus.CANCELLED, cancelled_at=now, refund_amount=refund)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AlreadyCancelledError("Booking is already cancelled", booking_id=booking_id)

            # Same row order as create_booking: wallet, flight, seat holds
            await WalletService.credit(
                db,
                wallet,
                refund,
                f"Refund for cancelled booking - PNR: {pnr}",
                booking_id=booking_id,
            )

            result = await db.execute(
                update(Flight)
                .where(Flight.id == flight_id, Flight.available_seats + count <= Flight.total_seats)
                .values(available_seats=Flight.available_seats + count, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise FlightBookingError(
                    f"Seat inventory of flight {flight_id} can't take back {count} seat(s)",
                    flight_id=flight_id,
                )

            await db.execute(
                update(BookingSeat)
                .where(BookingSeat.booking_id == booking_id)
                .values(is_held=None)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except FlightBookingError as e:
            await db.rollback()
            booking_rejections_total.labels(reason=e.error_code).inc()
            raise
        except Exception:
            await db.rollback()
            raise

        bookings_cancelled_total.inc()
        wallet_transactions_total.labels(kind=TransactionKind.CREDIT.value).inc()
        logger.info(
            f"Booking {pnr} cancelled, refunded {refund}",
            extra={'user_id': user_id, 'flight_id': flight_id, 'booking_id': booking_id, 'pnr': pnr},
        )
        return await BookingService._load(db, booking_id)

    @staticmethod
    async def get_user_bookings(
        db: AsyncSession,
        user_id: int,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """All bookings for a user, newest first"""
        query = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .options(selectinload(Booking.seats), selectinload(Booking.flight))
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        if status:
            query = query.where(Booking.status == status)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
        """A single booking, visible to its owner only"""
        booking = await db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError(f"Booking not found with id {booking_id}", booking_id=booking_id)
        if booking.user_id != user_id:
            raise ForbiddenError("Not authorized to access this booking", booking_id=booking_id)
        return await BookingService._load(db, booking_id)

    @staticmethod
    async def get_ticket(db: AsyncSession, booking_id: int, user_id: int) -> dict:
        """Ticket data for a booking (the fields a printed ticket shows)"""
        booking = await BookingService.get_booking(db, booking_id, user_id)
        flight = booking.flight
        return {
            "pnr": booking.pnr,
            "passenger_name": booking.passenger_name,
            "flight_number": flight.flight_number,
            "airline": flight.airline,
            "departure_city": flight.departure_city,
            "arrival_city": flight.arrival_city,
            "departure_time": flight.departure_time,
            "arrival_time": flight.arrival_time,
            "seat_numbers": booking.seat_numbers,
            "passenger_count": booking.passenger_count,
            "journey_date": booking.journey_date,
            "status": booking.status,
            "amount_paid": booking.amount_paid,
        }
