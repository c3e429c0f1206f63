import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError
from structlog import get_logger

from routemap.config import settings

logger = get_logger()


def _redis() -> Redis:
    return Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)


async def get_json(key: str) -> Optional[Any]:
    """Return the cached value for ``key``, or None on a miss or when Redis is unavailable."""
    if not settings.CACHE_ENABLED:
        return None
    redis = _redis()
    try:
        cached = await redis.get(key)
    except RedisError as e:
        logger.warning("Cache read failed", cache_key=key, error=str(e))
        return None
    finally:
        await redis.aclose()
    if cached is None:
        logger.info("Cache miss", cache_key=key)
        return None
    logger.info("Cache hit", cache_key=key)
    try:
        return json.loads(cached)
    except ValueError:
        logger.warning("Cache entry corrupted; ignoring", cache_key=key)
        return None


async def set_json(key: str, ttl: int, value: Any) -> None:
    if not settings.CACHE_ENABLED:
        return
    redis = _redis()
    try:
        await redis.setex(key, ttl, json.dumps(value))
    except RedisError as e:
        logger.warning("Cache write failed", cache_key=key, error=str(e))
    finally:
        await redis.aclose()


async def ping() -> bool:
    redis = _redis()
    try:
        return bool(await redis.ping())
    finally:
        await redis.aclose()
