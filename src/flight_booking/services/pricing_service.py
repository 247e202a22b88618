"""
Pricing Service - demand-based surge pricing

A flight is either at BASELINE (current price == base price) or SURGED.
Enough recent booking attempts move it to SURGED once; after the cooldown
window it falls back to BASELINE unconditionally. There is no second tier.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flight_booking.core.clock import utcnow
from flight_booking.core.config import settings
from flight_booking.core.metrics import (
    booking_attempts_total,
    price_resets_total,
    surge_pricing_applied_total,
)
from flight_booking.models import BookingAttempt, Flight, PriceState
from flight_booking.services.errors import NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceChange:
    """Outcome of a price evaluation that must be persisted"""
    price: int
    state: PriceState
    reason: str  # "cooldown_reset" or "surge"


def surge_price(base_price: int) -> int:
    """Base price raised by the surge percentage, floored, never above the cap"""
    raised = base_price * (100 + settings.SURGE_PERCENT) // 100
    cap = base_price * (100 + settings.SURGE_CAP_PERCENT) // 100
    return min(raised, cap)


def evaluate_price(flight: Flight, recent_attempts: int, now: datetime) -> Optional[PriceChange]:
    """
    Decide the next price for a flight.

    1. Cooldown elapsed since the last price update -> reset to base.
    2. Enough recent attempts while at baseline -> apply surge once.
    3. Otherwise no change (returns None).
    """
    cooldown = timedelta(minutes=settings.PRICE_COOLDOWN_MINUTES)
    if now - flight.last_price_update > cooldown:
        return PriceChange(price=flight.base_price, state=PriceState.BASELINE, reason="cooldown_reset")

    if (
        recent_attempts >= settings.SURGE_ATTEMPT_THRESHOLD
        and flight.price_state == PriceState.BASELINE
    ):
        return PriceChange(price=surge_price(flight.base_price), state=PriceState.SURGED, reason="surge")

    return None


class PricingService:
    """Service for booking-attempt tracking and price refresh"""

    @staticmethod
    async def get_flight(db: AsyncSession, flight_id: int) -> Flight:
        flight = await db.get(Flight, flight_id)
        if not flight:
            raise NotFoundError(f"Flight not found with id {flight_id}", flight_id=flight_id)
        return flight

    @staticmethod
    async def record_attempt(
        db: AsyncSession,
        flight_id: int,
        user_id: Optional[int],
        now: Optional[datetime] = None,
    ) -> BookingAttempt:
        """Append a timestamped booking attempt. Does not change the price."""
        await PricingService.get_flight(db, flight_id)

        attempt = BookingAttempt(flight_id=flight_id, user_id=user_id, created_at=now or utcnow())
        db.add(attempt)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        booking_attempts_total.inc()
        logger.info(
            f"Booking attempt recorded for flight {flight_id}",
            extra={'flight_id': flight_id, 'user_id': user_id},
        )
        return attempt

    @staticmethod
    async def count_recent_attempts(db: AsyncSession, flight_id: int, now: datetime) -> int:
        window_start = now - timedelta(minutes=settings.SURGE_WINDOW_MINUTES)
        query = select(func.count(BookingAttempt.id)).where(
            BookingAttempt.flight_id == flight_id,
            BookingAttempt.created_at > window_start,
        )
        result = await db.execute(query)
        return result.scalar() or 0

    @staticmethod
    async def refresh_price(
        db: AsyncSession,
        flight_id: int,
        now: Optional[datetime] = None,
    ) -> Flight:
        """
        Re-evaluate and persist a flight's price.

        The write is guarded by `price_version`: if another request changed
        the price since we read it, our decision is dropped and the winner's
        state is returned. Both writers reach the same state, so a reset or
        surge is applied exactly once.
        """
        now = now or utcnow()
        flight = await PricingService.get_flight(db, flight_id)
        recent = await PricingService.count_recent_attempts(db, flight_id, now)

        change = evaluate_price(flight, recent, now)
        if change is None:
            return flight

        try:
            result = await db.execute(
                update(Flight)
                .where(Flight.id == flight_id, Flight.price_version == flight.price_version)
                .values(
                    current_price=change.price,
                    price_state=change.state,
                    last_price_update=now,
                    price_version=Flight.price_version + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if result.rowcount == 0:
            logger.info(
                f"Price of flight {flight_id} changed concurrently, keeping the stored price",
                extra={'flight_id': flight_id},
            )
        elif change.reason == "surge":
            surge_pricing_applied_total.inc()
            logger.info(
                f"Surge pricing applied to flight {flight_id}: {flight.base_price} -> {change.price} "
                f"({recent} attempts in {settings.SURGE_WINDOW_MINUTES} min)",
                extra={'flight_id': flight_id},
            )
        else:
            price_resets_total.inc()
            logger.info(f"Price of flight {flight_id} reset to base", extra={'flight_id': flight_id})

        await db.refresh(flight)
        return flight
