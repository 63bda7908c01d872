"""
Redis connection and hybrid in-memory + Redis rate limiting
for the public booking endpoints
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from .config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS, RATE_LIMIT_ENABLED

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None

# In-memory counters, synced to Redis periodically
# Format: {key: {'count': int, 'reset_time': int, 'last_redis_sync': int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # Sync to Redis every 10 seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # Drop expired entries every 60 seconds
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """Get or create the shared Redis client (REDIS_URL or individual settings)"""
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")
        common = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
            "retry_on_timeout": True,
            "health_check_interval": 30,
            "max_connections": 20,
        }

        if redis_url:
            client = redis.from_url(redis_url, **common)
        else:
            client = redis.Redis(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                password=os.getenv("REDIS_PASSWORD", None),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **common,
            )

        try:
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise
        logger.info("Redis connected successfully")
        redis_client = client

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if current_time >= v["reset_time"]]
        for k in expired_keys:
            del memory_cache[k]

        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis]
) -> tuple[bool, int, int]:
    """Count one request against `key`.

    Counts live in memory and are pushed to Redis every few seconds so that
    several workers converge on a shared count without one Redis round trip
    per request. With no Redis client the limit is enforced per process.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    cleanup_expired_cache()
    current_time = int(time.time())

    with cache_lock:
        entry = memory_cache.get(key)
        if entry is None:
            entry = {"count": 0, "reset_time": current_time + window_seconds, "last_redis_sync": 0}
            if client is not None:
                try:
                    redis_count = client.get(key)
                    redis_ttl = client.ttl(key)
                    if redis_count and redis_ttl > 0:
                        entry = {
                            "count": int(redis_count),
                            "reset_time": current_time + redis_ttl,
                            "last_redis_sync": current_time,
                        }
                except Exception as e:
                    logger.warning(f"⚠️ Failed to load rate limit from Redis, using memory only: {e}")
            memory_cache[key] = entry

        if current_time >= entry["reset_time"]:
            entry.update(count=0, reset_time=current_time + window_seconds, last_redis_sync=0)

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if client is not None and current_time - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=max(1, entry["reset_time"] - current_time))
                entry["last_redis_sync"] = current_time
            except Exception as e:
                logger.warning(f"⚠️ Failed to sync rate limit to Redis: {e}")

        ttl = max(0, entry["reset_time"] - current_time)
        return is_allowed, entry["count"], ttl


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Create a per-IP rate limiter dependency

    Example usage:
        booking_rate_limiter = create_rate_limiter(limit=10, window_seconds=60, key_prefix="booking")

        @router.post("/appointments")
        async def book(data: BookingCreate, _: None = Depends(booking_rate_limiter)):
            ...
    """

    async def rate_limiter(request: Request):
        if not RATE_LIMIT_ENABLED:
            return

        try:
            client = get_redis_client()
        except Exception:
            client = None

        key = f"{key_prefix}:{_client_ip(request)}"
        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter


booking_rate_limiter = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT, window_seconds=BOOKING_RATE_WINDOW_SECONDS, key_prefix="booking"
)
