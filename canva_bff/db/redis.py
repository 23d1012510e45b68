"""Optional Redis connection.

When REDIS_URL is set, pending OAuth states live in Redis so that any
instance behind the load balancer can finish a callback that another
instance started.  Without it, everything stays in-process, which is
fine for a single local server.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis

from canva_bff.core.config import SETTINGS

logger = logging.getLogger(__name__)

if SETTINGS.redis_url:
    redis_pool: aioredis.Redis | None = aioredis.from_url(  # type: ignore[type-arg]
        SETTINGS.redis_url,
        decode_responses=True,
        max_connections=10,
    )
else:
    redis_pool = None


@asynccontextmanager
async def lifespan_redis():
    """Ping on startup, close the pool on shutdown."""
    if redis_pool is None:
        logger.info("No REDIS_URL configured; pending OAuth states kept in memory")
        yield
        return

    try:
        await redis_pool.ping()  # type: ignore[misc]
        logger.info("Redis connected")
    except Exception:
        # Keep serving: the in-process store is not swapped in, so callbacks
        # will fail loudly until Redis comes back rather than silently split.
        logger.exception("Redis connection failed on startup")
        yield
        return

    yield

    await redis_pool.aclose()
    logger.info("Redis connection pool closed")
