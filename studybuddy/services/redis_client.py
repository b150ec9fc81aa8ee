"""
studybuddy/services/redis_client.py

Redis connection pool, lifecycle managed by FastAPI's lifespan.

Redis backs the per-IP request counter only. It is optional: with no
``REDIS_URL`` configured, ``init_redis`` returns ``None`` and rate limiting
is disabled.

Usage:
    from fastapi import Depends
    from studybuddy.services.redis_client import get_redis

    @router.post("/example")
    async def example(redis: aioredis.Redis | None = Depends(get_redis)):
        ...
"""

import redis.asyncio as aioredis
from fastapi import Request

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger

logger = get_logger(__name__)


async def init_redis() -> aioredis.Redis | None:
    """Create an async Redis connection pool and verify connectivity.

    Called once during application startup (lifespan). Performs a PING
    to fail fast if Redis is configured but unreachable.

    Returns:
        A ping-verified ``redis.asyncio.Redis`` instance, or ``None`` when
        no Redis URL is configured.

    Raises:
        RuntimeError: If Redis cannot be reached at startup.
    """
    settings = get_settings()
    redis_url = settings.redis_url

    if not redis_url:
        logger.info("redis_disabled", reason="REDIS_URL not set, rate limiting is off")
        return None

    logger.info("redis_init_start", url=redis_url)

    client: aioredis.Redis = aioredis.from_url(
        redis_url,
        decode_responses=True,
        health_check_interval=30,
    )

    try:
        pong = await client.ping()
        if not pong:
            raise ConnectionError("PING returned falsy response")
        logger.info("redis_connected", url=redis_url)
    except Exception as exc:
        logger.error("redis_connection_failed", url=redis_url, error=str(exc))
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}: {exc}") from exc

    return client


async def close_redis(client: aioredis.Redis | None) -> None:
    """Gracefully close the Redis connection pool at shutdown."""
    if client is None:
        return
    await client.aclose()
    logger.info("redis_closed")


def get_redis(request: Request) -> aioredis.Redis | None:
    """FastAPI dependency that retrieves the Redis client from app state."""
    return getattr(request.app.state, "redis", None)
