"""
Redis-backed counters. Redis is optional: with no connection every check passes.
"""
import logging
from . import core

logger = logging.getLogger(__name__)


async def check_rate_limit(user_id: int, action: str, limit: int = 100, window: int = 3600) -> bool:
    """Check if user is within rate limit"""
    if not core.REDIS:
        return True

    key = f"rate:rate_limit:{user_id}:{action}"
    try:
        current = await core.REDIS.incr(key)
        if current == 1:
            await core.REDIS.expire(key, window)
    except Exception as e:
        logger.error(f"Rate limit check failed for key {key}: {str(e)}")
        return True
    return current <= limit
