"""
Redis client used for idempotency records
"""
import json
import logging
from enum import Enum
from typing import Any, Optional

import redis.asyncio as redis

from flight_booking.core.config import settings

logger = logging.getLogger(__name__)


class EnumEncoder(json.JSONEncoder):
    """JSON encoder that handles Enums properly"""
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class RedisClient:
    """
    Async Redis client wrapper.

    Every operation degrades to a no-op when Redis is unreachable, so the
    booking path never depends on Redis being up.
    """

    def __init__(self):
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50
            )
            await self.redis.ping()
            logger.info("Redis connected successfully")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            self.redis = None

    async def close(self):
        """Close Redis connection"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        """Get JSON value"""
        if not self.redis:
            return None

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Set JSON value with TTL"""
        if not self.redis:
            return False

        try:
            serialized = json.dumps(value, cls=EnumEncoder, default=str)
            await self.redis.setex(key, ttl, serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def set_if_absent(self, key: str, value: Any, ttl: int) -> Optional[bool]:
        """
        SET NX with TTL.

        Returns True/False for acquired/not acquired, None when Redis is unavailable.
        """
        if not self.redis:
            return None

        try:
            return bool(await self.redis.set(key, value, ex=ttl, nx=True))
        except Exception as e:
            logger.error(f"Redis SET NX error for key {key}: {e}")
            return None

    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys"""
        if not self.redis:
            return False

        try:
            await self.redis.delete(*keys)
            return True
        except Exception as e:
            logger.error(f"Redis DELETE error: {e}")
            return False


# Global Redis client instance
redis_client = RedisClient()
