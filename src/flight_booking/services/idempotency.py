"""
Idempotency keys for booking creation

A client retrying POST /bookings with the same X-Idempotency-Key gets the
stored result back instead of being charged a second time.
"""
import hashlib
import json
import logging
import time
from typing import Any, Optional

from flight_booking.core.config import settings
from flight_booking.core.redis import redis_client

logger = logging.getLogger(__name__)


class IdempotencyService:
    """Manages idempotency keys for booking operations"""

    def __init__(self, client=redis_client):
        self.redis = client
        self.ttl = settings.IDEMPOTENCY_TTL_SECONDS

    def generate_key(self, user_id: int, operation: str, client_key: str) -> str:
        """Namespace a client-supplied key by user and operation"""
        key_data = {"user_id": user_id, "operation": operation, "key": client_key}
        key_string = json.dumps(key_data, sort_keys=True)
        hash_key = hashlib.sha256(key_string.encode()).hexdigest()
        return f"idempotency:{operation}:{hash_key}"

    async def check_operation(self, idempotency_key: str) -> Optional[dict]:
        """Previous result if the operation already completed, else None"""
        result = await self.redis.get(idempotency_key)
        if result:
            logger.info(f"Idempotent replay detected: {idempotency_key}")
        return result

    async def store_result(self, idempotency_key: str, result: Any):
        await self.redis.set(idempotency_key, result, ttl=self.ttl)

    async def lock_operation(self, idempotency_key: str, ttl: int = 30) -> bool:
        """
        Acquire the in-progress lock for a key.

        Returns True when Redis is unavailable: idempotency is best-effort and
        must not block bookings.
        """
        acquired = await self.redis.set_if_absent(f"{idempotency_key}:lock", time.time(), ttl)
        return True if acquired is None else acquired

    async def release_lock(self, idempotency_key: str):
        await self.redis.delete(f"{idempotency_key}:lock")


# Global instance
idempotency_service = IdempotencyService()
