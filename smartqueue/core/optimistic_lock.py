"""
SmartQueue — Optimistic retry decorator

Token numbers are claimed per (canteen, queue type, day) scope. When two
writers compute the same sequence number, only one claim succeeds; the
loser raises StaleDataError and the decorator re-reads and retries with
exponential backoff + jitter.
"""
import asyncio
import functools
import logging
import random

from smartqueue.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class StaleDataError(Exception):
    """Raised when a sequence claim is lost to a concurrent writer:
    the scope's token count changed between our read and our claim.
    """


def with_optimistic_retry(max_retries: int | None = None):
    """
    Decorator for async functions that perform read-then-claim writes.
    On StaleDataError, retries with exponential backoff + jitter.

    Usage:
        @with_optimistic_retry()
        async def issue(...):
            ...
    """
    _max = max_retries or settings.OPT_LOCK_MAX_RETRIES

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except StaleDataError:
                    if attempt == _max:
                        logger.error(
                            "Sequence claim conflict unresolved after %d retries for %s",
                            _max, func.__name__,
                        )
                        raise
                    base_delay = settings.OPT_LOCK_BASE_DELAY_MS / 1000.0
                    max_delay = settings.OPT_LOCK_MAX_DELAY_MS / 1000.0
                    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS / 1000.0)
                    delay = min(base_delay * (2 ** attempt), max_delay) + jitter
                    logger.warning(
                        "StaleDataError on attempt %d/%d, retrying in %.3fs",
                        attempt, _max, delay,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
