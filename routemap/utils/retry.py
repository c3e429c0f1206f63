import asyncio
from functools import wraps
from typing import Optional, Tuple, Type

import structlog

from routemap.config import settings

logger = structlog.get_logger()


def retry(
    tries: Optional[int] = None,
    delay: Optional[float] = None,
    backoff: Optional[float] = None,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
):
    """Retry an async callable on ``exceptions``.

    Unset arguments are read from settings on every call so they can be tuned
    through the environment.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            max_tries = tries if tries is not None else settings.RETRY_TRIES
            current_delay = delay if delay is not None else settings.RETRY_DELAY
            factor = backoff if backoff is not None else settings.RETRY_BACKOFF
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    logger.warning("Retry attempt failed", func=func.__name__, attempt=attempt, error=str(e))
                    if attempt >= max_tries:
                        raise
                    await asyncio.sleep(current_delay)
                    current_delay *= factor
                    attempt += 1
        return wrapper
    return decorator
