import asyncio
import logging
from prometheus_client import Counter, start_http_server
from . import config

logger = logging.getLogger(__name__)

REDIS = None

SIGNUPS = Counter('connectp_signups', 'Accounts created')
LOGINS = Counter('connectp_logins', 'Successful logins')
ONBOARDINGS = Counter('connectp_onboardings', 'Profile onboarding/update calls')
FRIEND_REQUESTS_SENT = Counter('connectp_friend_requests_sent', 'Friend requests created')
FRIEND_REQUESTS_ACCEPTED = Counter('connectp_friend_requests_accepted', 'Friend requests accepted')
CHAT_SYNC_FAILURES = Counter('connectp_chat_sync_failures', 'Best-effort chat identity upserts that failed')


def init_metrics(port: int = None):
    """Initialize Prometheus metrics server"""
    port = port or config.METRICS_PORT
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except Exception as e:
        logger.warning(f'Prometheus start failed: {e}')


async def redis_startup():
    """Connect to Redis when REDIS_URL is configured; the app runs without it."""
    global REDIS

    if not config.REDIS_URL:
        logger.info("REDIS_URL not set, rate limiting disabled")
        return

    import redis.asyncio as aioredis

    max_retries = 3
    retry_delay = 3  # seconds

    for attempt in range(max_retries):
        try:
            logger.info(f"Attempting to connect to Redis: {config.REDIS_URL} (attempt {attempt + 1}/{max_retries})")

            REDIS = aioredis.from_url(
                config.REDIS_URL,
                decode_responses=True,
                max_connections=20,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=5
            )

            await REDIS.ping()

            logger.info("Redis connected successfully")
            break

        except Exception as e:
            logger.warning(f'Redis startup attempt {attempt + 1} failed: {e}')
            if REDIS:
                try:
                    await REDIS.aclose()
                except Exception as close_error:
                    logger.debug(f'Redis close after failed ping raised: {close_error}')
                REDIS = None

            if attempt < max_retries - 1:
                logger.info(f"Retrying Redis connection in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
            else:
                logger.error("Failed to connect to Redis after all retries")


async def shutdown_connections():
    """Gracefully shutdown all connections"""
    global REDIS
    from .models import engine

    logger.info("Shutting down connections...")

    if REDIS:
        try:
            await REDIS.aclose()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {e}")
        REDIS = None

    await engine.dispose()
