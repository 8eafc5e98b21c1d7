"""
Retry helper for store calls that fail with StoreUnavailableError.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from movie_ratings.core.config import config
from movie_ratings.core.errors import StoreUnavailableError
from movie_ratings.core.logger import logger

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Exponential delay for the given 1-based attempt, capped at max_delay."""
    return min(max_delay, base_delay * (2 ** (attempt - 1)))


async def with_store_retry(
    func: Callable[[], Awaitable[T]],
    operation: str,
    attempts: Optional[int] = None,
    base_delay: Optional[float] = None,
    max_delay: Optional[float] = None,
) -> T:
    """
    Run ``func`` and retry it with capped exponential backoff while it raises
    StoreUnavailableError. The last error is re-raised once attempts run out.

    ``func`` must be safe to re-run from scratch.
    """
    attempts = attempts or config.store_retry_attempts
    base_delay = config.store_retry_base_delay if base_delay is None else base_delay
    max_delay = config.store_retry_max_delay if max_delay is None else max_delay

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except StoreUnavailableError as e:
            if attempt == attempts:
                logger.error(
                    f"Store still unavailable after {attempts} attempts: {operation}",
                    error=e,
                    metadata={"event": "store_retry_exhausted", "operation": operation},
                )
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                f"Store unavailable, retrying {operation} in {delay:.2f}s",
                metadata={
                    "event": "store_retry",
                    "operation": operation,
                    "attempt": attempt,
                    "delaySeconds": delay,
                },
            )
            await asyncio.sleep(delay)
