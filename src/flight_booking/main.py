"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from flight_booking.core.config import settings
from flight_booking.core.database import engine
from flight_booking.core.logging_config import setup_logging
from flight_booking.core.metrics import get_metrics
from flight_booking.core.redis import redis_client
from flight_booking.api import bookings, flights, wallet
from flight_booking.middleware.rate_limiter import limiter
from flight_booking.middleware.tracing import TracingMiddleware
from flight_booking.services import FlightBookingError
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    setup_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON, log_file=settings.LOG_FILE)
    logger.info(f"Starting up {settings.APP_NAME} {settings.APP_VERSION}")

    # Test database connection
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    # Idempotency records live in Redis; bookings keep working without it
    await redis_client.connect()

    yield

    # Shutdown
    logger.info("Shutting down...")
    await redis_client.close()
    await engine.dispose()
    logger.info("Cleanup complete")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Flight booking with demand-based surge pricing and wallet payments",
    lifespan=lifespan,
)

# Add rate limiter state
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(f"Rate limit exceeded for {request.url.path}")

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "detail": str(exc.detail)
        },
        headers={
            "Retry-After": "60"
        }
    )


@app.exception_handler(FlightBookingError)
async def flight_booking_error_handler(request: Request, exc: FlightBookingError):
    """Map domain errors to their HTTP status with a machine-readable code"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error_code,
            "message": exc.message,
            "detail": exc.context,
        },
    )


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TracingMiddleware)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    redis_status = "healthy" if redis_client.redis else "unavailable"

    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "redis": redis_status,
    }


@app.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Prometheus scrape endpoint"""
    data, content_type = get_metrics()
    return Response(content=data, media_type=content_type)


# Include routers
app.include_router(flights.router, prefix="/api/v1", tags=["Flights"])
app.include_router(bookings.router, prefix="/api/v1", tags=["Bookings"])
app.include_router(wallet.router, prefix="/api/v1", tags=["Wallet"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "flight_booking.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
