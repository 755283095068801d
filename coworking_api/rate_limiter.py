"""
Hybrid in-memory + Redis rate limiting utilities

Counters live in process memory and are mirrored to Redis periodically so that
several API workers converge on the same numbers without a Redis round-trip
per request. The clocking PIN lockout uses the same pattern but degrades to
memory-only when Redis is unreachable.
"""

import logging
import os
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import PIN_LOCKOUT_SECONDS, PIN_MAX_ATTEMPTS, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10  # seconds
MEMORY_CACHE_CLEANUP_INTERVAL = 60  # seconds
last_cleanup_time = 0


def get_redis_client() -> redis.Redis:
    """Get or create the shared Redis client (REDIS_URL, else REDIS_HOST/REDIS_PORT)"""
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection...")
        options = {
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 10,
            "retry_on_timeout": True,
            "health_check_interval": 30,
            "max_connections": 20,
        }
        if REDIS_URL:
            masked_url = f"{REDIS_URL.split(':')[0]}:****@{REDIS_URL.split('@')[-1]}" if "@" in REDIS_URL else "****"
            logger.info(f"📡 Using Redis URL connection: {masked_url}")
            client = redis.from_url(REDIS_URL, **options)
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            logger.info(f"📡 Using Redis at {redis_host}:{redis_port}")
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD"),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **options,
            )
        try:
            client.ping()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise
        logger.info("✅ Redis connected successfully")
        redis_client = client

    return redis_client


def cleanup_expired_cache():
    """Remove expired entries from memory cache"""
    global last_cleanup_time
    current_time = int(time.time())

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if current_time >= v.get("reset_time", 0)]
        for k in expired_keys:
            del memory_cache[k]
        if expired_keys:
            logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")

    last_cleanup_time = current_time


def _load_entry(key: str, window_seconds: int, client: Optional[redis.Redis], current_time: int) -> dict:
    """Seed a memory entry from Redis when a live counter already exists there"""
    if client is not None:
        try:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                return {
                    "count": int(redis_count),
                    "reset_time": current_time + redis_ttl,
                    "last_redis_sync": current_time,
                }
        except Exception as e:
            logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")
    return {"count": 0, "reset_time": current_time + window_seconds, "last_redis_sync": current_time}


def _sync_entry(key: str, entry: dict, client: Optional[redis.Redis], current_time: int):
    if client is None:
        return
    try:
        client.set(key, entry["count"], ex=max(1, entry["reset_time"] - current_time))
        entry["last_redis_sync"] = current_time
        logger.debug(f"📡 Synced {key} to Redis: {entry['count']}")
    except Exception as e:
        logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")


def check_rate_limit(
    key: str, limit: int, window_seconds: int, redis_client: redis.Redis
) -> tuple[bool, int, int]:
    """Check and count one request against a fixed window.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    try:
        current_time = int(time.time())
        cleanup_expired_cache()

        with cache_lock:
            if key not in memory_cache:
                memory_cache[key] = _load_entry(key, window_seconds, redis_client, current_time)
            entry = memory_cache[key]

            if current_time >= entry["reset_time"]:
                entry.update(count=0, reset_time=current_time + window_seconds, last_redis_sync=0)

            is_allowed = entry["count"] < limit
            if is_allowed:
                entry["count"] += 1

            if current_time - entry.get("last_redis_sync", 0) >= MEMORY_CACHE_SYNC_INTERVAL:
                _sync_entry(key, entry, redis_client, current_time)

            return is_allowed, entry["count"], max(0, entry["reset_time"] - current_time)

    except Exception as e:
        logger.error(f"❌ Rate limit check failed: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        return False, limit, 0


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for Redis key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    try:
        client = get_redis_client()
        key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"

        is_allowed, current_count, ttl = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
            raise HTTPException(
                status_code=429,
                detail={
                    "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                    "retry_after": ttl,
                    "limit": limit,
                    "window_seconds": window_seconds,
                },
                headers={"Retry-After": str(ttl)},
            )

        request.state.rate_limit_remaining = limit - current_count

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        contact_rate_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")

        @router.post("/contact")
        async def submit_contact(data: ContactMessageCreate, _: None = Depends(contact_rate_limiter)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter


# Public endpoint limiters
booking_rate_limiter = create_rate_limiter(limit=30, window_seconds=60, key_prefix="booking_calculate")
contact_rate_limiter = create_rate_limiter(limit=5, window_seconds=3600, key_prefix="contact")
clocking_rate_limiter = create_rate_limiter(limit=30, window_seconds=60, key_prefix="clocking")


# ============================================================================
# CLOCKING PIN LOCKOUT
# ============================================================================

pin_attempts: dict[str, dict] = {}
pin_lock = Lock()


def _pin_key(ip: str, employee_id) -> str:
    return f"pin_attempts:{ip}:{employee_id}"


def _optional_redis() -> Optional[redis.Redis]:
    try:
        return get_redis_client()
    except Exception as e:
        logger.debug(f"PIN lockout running in memory only: {e}")
        return None


def get_pin_lockout_remaining(ip: str, employee_id) -> int:
    """Seconds left on a PIN lockout for (ip, employee), 0 when not locked"""
    key = _pin_key(ip, employee_id)
    current_time = int(time.time())

    with pin_lock:
        entry = pin_attempts.get(key)
        if entry and current_time >= entry["reset_time"]:
            del pin_attempts[key]
            entry = None

    count = entry["count"] if entry else 0
    ttl = entry["reset_time"] - current_time if entry else 0

    client = _optional_redis()
    if client is not None:
        try:
            redis_count = client.get(key)
            if redis_count and int(redis_count) > count:
                count = int(redis_count)
                ttl = max(ttl, client.ttl(key))
        except Exception as e:
            logger.warning(f"⚠️ Failed to read PIN attempts from Redis: {e}")

    return max(0, ttl) if count >= PIN_MAX_ATTEMPTS else 0


def record_failed_pin_attempt(ip: str, employee_id) -> int:
    """Count one failed PIN entry, returns attempts used in the current window"""
    key = _pin_key(ip, employee_id)
    current_time = int(time.time())

    with pin_lock:
        entry = pin_attempts.get(key)
        if not entry or current_time >= entry["reset_time"]:
            entry = {"count": 0, "reset_time": current_time + PIN_LOCKOUT_SECONDS}
            pin_attempts[key] = entry
        entry["count"] += 1
        count = entry["count"]

    client = _optional_redis()
    if client is not None:
        try:
            client.set(key, count, ex=PIN_LOCKOUT_SECONDS)
        except Exception as e:
            logger.warning(f"⚠️ Failed to store PIN attempts in Redis: {e}")

    if count >= PIN_MAX_ATTEMPTS:
        logger.warning(f"🔒 PIN locked for employee {employee_id} from {ip} after {count} failures")
    return count


def reset_pin_attempts(ip: str, employee_id):
    key = _pin_key(ip, employee_id)
    with pin_lock:
        pin_attempts.pop(key, None)

    client = _optional_redis()
    if client is not None:
        try:
            client.delete(key)
        except Exception as e:
            logger.warning(f"⚠️ Failed to clear PIN attempts in Redis: {e}")
