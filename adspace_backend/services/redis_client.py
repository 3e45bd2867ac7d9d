"""Redis client for caching."""
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from adspace_backend.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Async JSON cache on top of Redis. Errors are logged, never raised."""

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self.client = client or redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            decode_responses=True,
            socket_connect_timeout=1,
        )
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds

    async def get_json(self, key: str) -> Optional[Any]:
        """Get a JSON value from cache, or None on miss or error."""
        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.warning(f"Redis GET error for {key}: {e}")
            return None

    async def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON value with the given (or default) TTL."""
        try:
            await self.client.setex(key, ttl or self.ttl_seconds, json.dumps(value))
            return True
        except Exception as e:
            logger.warning(f"Redis SET error for {key}: {e}")
            return False

    async def ping(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            logger.warning(f"Redis PING error: {e}")
            return False


# Shared cache instance
redis_cache = RedisCache()
