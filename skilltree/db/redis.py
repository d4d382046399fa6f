"""Redis connection management.

When REDIS_URL is configured we create a real client with a connection
pool; when it's None (local dev, tests) the engine keeps learner state
in memory and no Redis server is needed.

WHAT LIVES IN REDIS
-------------------
One JSON document per learner (``learner:<id>``): progress records,
gem totals plus the retained transaction tail, XP, streak and bonus
claims.  The engine treats the store as an opaque key-value store; the
only thing it needs beyond GET/SET is WATCH/MULTI so that a save made
from a stale read is refused (see repos/redis_learner_repo.py).
"""

from __future__ import annotations

import logging

import redis

from skilltree.core.config import SETTINGS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Conditional Redis client (None when REDIS_URL is not set)
# ---------------------------------------------------------------------------
# Checked at import time; every consumer of redis_client checks for None
# and falls back to the in-memory repo.

if SETTINGS.redis_url:
    redis_client: redis.Redis | None = redis.Redis.from_url(
        SETTINGS.redis_url,
        decode_responses=True,  # return str instead of bytes
        max_connections=20,
    )
else:
    redis_client = None


def check_redis(client: redis.Redis | None = None) -> bool:
    """Ping Redis on startup.  Returns False (and logs) when unreachable."""
    client = client if client is not None else redis_client
    if client is None:
        logger.info("No REDIS_URL configured; learner state is kept in memory")
        return False
    try:
        client.ping()
    except redis.RedisError:
        logger.exception("Redis connection failed on startup")
        return False
    logger.info("Redis connected")
    return True
