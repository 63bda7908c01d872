"""
Redis caching for read-mostly provider schedule data
(business hours and time off). Bookings never read through this cache.
"""
import json
import logging
from typing import Any, Optional

from .config import CACHE_ENABLED, SCHEDULE_CACHE_TTL_SECONDS
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


class Cache:
    """Redis cache wrapper with JSON serialization; every failure is a miss"""

    def __init__(self, enabled: bool = CACHE_ENABLED):
        self.enabled = enabled
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.enabled:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = SCHEDULE_CACHE_TTL_SECONDS) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False


# Global cache instance
cache = Cache()


def schedule_config_key(provider_id: int) -> str:
    return f"schedule_config:{provider_id}"


def get_schedule_config_cached(provider_id: int) -> Optional[dict]:
    """Cached {"hours": [...], "time_off": [...]} snapshot for a provider"""
    return cache.get(schedule_config_key(provider_id))


def set_schedule_config_cached(provider_id: int, config: dict) -> bool:
    return cache.set(schedule_config_key(provider_id), config, SCHEDULE_CACHE_TTL_SECONDS)


def invalidate_schedule_config_cache(provider_id: int) -> bool:
    """Call after any write to a provider's business hours or time off"""
    return cache.delete(schedule_config_key(provider_id))
