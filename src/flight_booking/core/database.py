"""
Database configuration and async session management
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from flight_booking.core.config import settings


def _engine_options(url: str) -> dict:
    options = {
        "echo": settings.DEBUG,  # Log SQL queries in debug mode
        "future": True,
        "pool_pre_ping": True,  # Verify connections before using
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    return options


# Create async engine
# asyncpg driver for PostgreSQL in deployment
engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Don't expire objects after commit
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to provide database sessions.

    Usage:
        @router.get("/flights")
        async def list_flights(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """
    Initialize database tables.
    Only for development - use migrations in production.
    """
    async with engine.begin() as conn:
        # Import all models to register them with Base
        from flight_booking import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)
