"""
Prometheus metrics for monitoring
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# ==================== Pricing Metrics ====================

booking_attempts_total = Counter(
    'booking_attempts_total',
    'Total booking attempts recorded against flights'
)

surge_pricing_applied_total = Counter(
    'surge_pricing_applied_total',
    'Times a flight moved from baseline to surge price'
)

price_resets_total = Counter(
    'price_resets_total',
    'Times a flight price was reset after the cooldown window'
)

# ==================== Booking Metrics ====================

bookings_created_total = Counter(
    'bookings_created_total',
    'Total bookings created'
)

bookings_cancelled_total = Counter(
    'bookings_cancelled_total',
    'Total bookings cancelled'
)

booking_rejections_total = Counter(
    'booking_rejections_total',
    'Booking operations rejected',
    ['reason']
)

booking_creation_duration_seconds = Histogram(
    'booking_creation_duration_seconds',
    'Time to create a booking',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# ==================== Wallet Metrics ====================

wallet_transactions_total = Counter(
    'wallet_transactions_total',
    'Wallet ledger entries written',
    ['kind']
)

# ==================== Helper Functions ====================

def track_time(metric: Histogram):
    """Decorator to track execution time"""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def record_http_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """Record request count and latency"""
    http_requests_total.labels(method=method, endpoint=endpoint, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration_seconds)


def get_metrics():
    """Get current metrics in Prometheus format"""
    return generate_latest(), CONTENT_TYPE_LATEST
