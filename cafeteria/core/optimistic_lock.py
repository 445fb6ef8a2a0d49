"""
Cafeteria — Optimistic locking retry decorator

Uses exponential backoff + jitter to handle SQLAlchemy StaleDataError.
StaleDataError occurs when a product's version_id in the DB was incremented
by another concurrent transaction between our read and write. The wrapped
function must own its transaction so that each attempt starts from a
fresh read.
"""
import asyncio
import functools
import logging
import random

from sqlalchemy.orm.exc import StaleDataError

from cafeteria.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before the next attempt: base * 2^attempt + jitter, capped."""
    base_delay = settings.OPT_LOCK_BASE_DELAY_MS / 1000.0
    max_delay = settings.OPT_LOCK_MAX_DELAY_MS / 1000.0
    jitter = random.uniform(0, settings.OPT_LOCK_JITTER_MS / 1000.0)
    return min(base_delay * (2 ** attempt), max_delay) + jitter


def with_optimistic_retry(max_retries: int | None = None):
    """
    Decorator for async functions that perform optimistic-lock DB writes.
    On StaleDataError, retries with exponential backoff + jitter and
    re-raises the last conflict once the attempts run out.

    Usage:
        @with_optimistic_retry()
        async def commit_order(db, ...):
            ...
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            _max = max_retries or settings.OPT_LOCK_MAX_RETRIES
            for attempt in range(1, _max + 1):
                try:
                    return await func(*args, **kwargs)
                except StaleDataError:
                    if attempt == _max:
                        logger.error(
                            "Optimistic lock conflict unresolved after %d attempts for %s",
                            _max, func.__name__,
                        )
                        raise
                    delay = backoff_delay(attempt)
                    logger.warning(
                        "StaleDataError on attempt %d/%d, retrying %s in %.3fs",
                        attempt, _max, func.__name__, delay,
                    )
                    await asyncio.sleep(delay)
        return wrapper
    return decorator
