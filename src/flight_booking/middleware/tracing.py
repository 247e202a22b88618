"""
Request tracing middleware
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from flight_booking.core.logging_config import generate_trace_id, set_trace_id
from flight_booking.core.metrics import record_http_request

logger = logging.getLogger(__name__)


class TracingMiddleware(BaseHTTPMiddleware):
    """Attach a trace ID to every request, log it and record latency"""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get('X-Trace-ID') or generate_trace_id()
        set_trace_id(trace_id)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            duration = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={'duration_ms': round(duration * 1000, 2)},
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        route = request.scope.get('route')
        endpoint = getattr(route, 'path', request.url.path)
        record_http_request(request.method, endpoint, response.status_code, duration)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={'duration_ms': round(duration * 1000, 2)},
        )
        response.headers['X-Trace-ID'] = trace_id
        return response
