"""Redis-backed request rate limiting."""

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError
import structlog

from recordstore.config import Settings, get_settings

logger = structlog.get_logger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create the Redis client.

    Returns:
        Redis client or None if connection fails (requests are then not limited)
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    settings = get_settings()

    try:
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("redis_connection_failed", error=str(e))
        return None

    _redis_client = client
    logger.info("redis_connected", url=settings.redis_url.split("@")[-1])
    return _redis_client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_connection_closed")


class RateLimitService:
    """Fixed-window request counter keyed by client."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    async def check_rate_limit(self, client_key: str) -> tuple[bool, int]:
        """Count one request for client_key and report whether it is allowed.

        The first request of a window creates the counter with a TTL of
        ``rate_limit_window_seconds``; the window resets when it expires.

        Args:
            client_key: Caller identity, normally the client IP

        Returns:
            Tuple of (allowed, remaining); remaining is -1 when Redis is
            unavailable and the request is let through
        """
        client = await get_redis()
        if client is None:
            return True, -1

        limit = self.settings.rate_limit_max_requests
        key = f"rate_limit:{client_key}"

        try:
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, self.settings.rate_limit_window_seconds)
        except RedisError as e:
            logger.warning("redis_rate_limit_failed", error=str(e), client=client_key)
            return True, -1

        if count > limit:
            return False, 0
        return True, limit - count
