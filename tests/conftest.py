import os

# Must be set before flight_booking is imported: settings are read once
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flight_booking import models  # noqa: F401
from flight_booking.core.clock import utcnow
from flight_booking.core.database import Base, get_db
from flight_booking.main import app
from flight_booking.middleware.rate_limiter import limiter
from flight_booking.models import Flight, PriceState


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test"""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def sql_statements(engine):
    """SQL text of every statement executed while the test runs, in order"""
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", record)
    yield statements
    event.remove(engine.sync_engine, "before_cursor_execute", record)


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_flight(db):
    """Insert a flight; keyword arguments override the defaults"""
    counter = {"n": 0}

    async def _make_flight(**overrides) -> Flight:
        counter["n"] += 1
        base_price = overrides.pop("base_price", 2500)
        total_seats = overrides.pop("total_seats", 100)
        values = {
            "flight_number": f"AI{100 + counter['n']}",
            "airline": "Air India",
            "departure_city": "Mumbai",
            "arrival_city": "Delhi",
            "departure_time": utcnow().replace(hour=8, minute=0, second=0, microsecond=0),
            "base_price": base_price,
            "current_price": base_price,
            "price_state": PriceState.BASELINE,
            "last_price_update": utcnow(),
            "total_seats": total_seats,
            "available_seats": total_seats,
        }
        values.update(overrides)
        values.setdefault("arrival_time", values["departure_time"].replace(hour=10, minute=30))

        flight = Flight(**values)
        db.add(flight)
        await db.commit()
        await db.refresh(flight)
        return flight

    return _make_flight


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client bound to the app with the test database"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
