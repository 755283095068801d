"""
Redis caching for public read-mostly payloads
Active spaces and booking settings are served from here, invalidated on admin writes
"""
import json
import logging
from functools import wraps
from typing import Any, Optional

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

SPACES_CACHE_KEY = "spaces:active"
BOOKING_SETTINGS_CACHE_KEY = "booking_settings:current"

SPACES_TTL = 300
BOOKING_SETTINGS_TTL = 3600


class PayloadCache:
    """JSON payloads in Redis. A miss, an outage or a decode error all read as None."""

    def __init__(self):
        self.redis_client = None

    def _client(self):
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Payload cache disabled, Redis unreachable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        client = self._client()
        if client is None:
            return None
        try:
            raw = client.get(key)
        except Exception as e:
            logger.error(f"❌ Cache read failed for {key}: {e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Dropping undecodable cache entry {key}")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        client = self._client()
        if client is None:
            return False
        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except Exception as e:
            logger.error(f"❌ Cache write failed for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._client()
        if client is None:
            return False
        try:
            client.delete(key)
            logger.info(f"🧹 Cache entry {key} invalidated")
            return True
        except Exception as e:
            logger.error(f"❌ Cache invalidation failed for {key}: {e}")
            return False


cache = PayloadCache()


def cached(key: str, ttl: int):
    """
    Serve a payload builder's result from `key`, building and storing it on a miss.

    The builder must return JSON-serializable data; None is never stored.
    """

    def decorator(builder):
        @wraps(builder)
        def wrapper(*args, **kwargs):
            payload = cache.get(key)
            if payload is not None:
                return payload
            payload = builder(*args, **kwargs)
            if payload is not None:
                cache.set(key, payload, ttl)
            return payload

        return wrapper

    return decorator


def invalidate_spaces_cache() -> bool:
    return cache.delete(SPACES_CACHE_KEY)


def invalidate_booking_settings_cache() -> bool:
    return cache.delete(BOOKING_SETTINGS_CACHE_KEY)
