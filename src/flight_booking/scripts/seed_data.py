"""
Seed script to populate the database with sample domestic flights

Usage:
    python -m flight_booking.scripts.seed_data
"""
import asyncio
from datetime import datetime, timedelta

from sqlalchemy import select

from flight_booking.core.clock import utcnow
from flight_booking.core.database import AsyncSessionLocal, init_db
from flight_booking.models import Flight, PriceState

# (flight number, airline, from, to, days ahead, departure "HH:MM", duration minutes, base price)
FLIGHTS = [
    ("AI101", "Air India", "Mumbai", "Delhi", 1, "08:00", 150, 2500),
    ("SG202", "SpiceJet", "Delhi", "Bangalore", 1, "10:00", 150, 2800),
    ("6E303", "IndiGo", "Mumbai", "Chennai", 1, "14:00", 135, 2300),
    ("G8404", "GoAir", "Bangalore", "Kolkata", 2, "09:00", 150, 2200),
    ("AI505", "Air India", "Delhi", "Hyderabad", 2, "11:00", 120, 3000),
    ("6E606", "IndiGo", "Chennai", "Pune", 2, "16:00", 90, 2700),
    ("SG707", "SpiceJet", "Kolkata", "Ahmedabad", 3, "07:30", 150, 2100),
    ("AI808", "Air India", "Hyderabad", "Jaipur", 3, "12:00", 120, 2600),
    ("6E909", "IndiGo", "Pune", "Goa", 3, "09:00", 75, 2900),
    ("G81010", "GoAir", "Ahmedabad", "Mumbai", 4, "18:00", 80, 2400),
]

TOTAL_SEATS = 100


def _departure(today: datetime, days_ahead: int, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return today + timedelta(days=days_ahead, hours=hours, minutes=minutes)


async def create_sample_flights(db):
    """Create sample flights, skipping flight numbers that already exist"""
    now = utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    flights = []
    for number, airline, departure_city, arrival_city, days, hhmm, duration, base_price in FLIGHTS:
        result = await db.execute(select(Flight).where(Flight.flight_number == number))
        existing = result.scalar_one_or_none()

        if existing:
            print(f"Flight {number} already exists, skipping...")
            flights.append(existing)
            continue

        departure_time = _departure(today, days, hhmm)
        flight = Flight(
            flight_number=number,
            airline=airline,
            departure_city=departure_city,
            arrival_city=arrival_city,
            departure_time=departure_time,
            arrival_time=departure_time + timedelta(minutes=duration),
            base_price=base_price,
            current_price=base_price,
            price_state=PriceState.BASELINE,
            last_price_update=now,
            total_seats=TOTAL_SEATS,
            available_seats=TOTAL_SEATS,
        )
        db.add(flight)
        flights.append(flight)
        print(f"Created flight: {number} {departure_city} -> {arrival_city} at {base_price}")

    await db.commit()
    return flights


async def seed_database():
    """Main seeding function"""
    print("Starting database seeding...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            print("\n=== Creating Flights ===")
            flights = await create_sample_flights(db)

            print("\n=== Seeding Complete! ===")
            print(f"{len(flights)} flights available")
        except Exception as e:
            print(f"Error during seeding: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(seed_database())
