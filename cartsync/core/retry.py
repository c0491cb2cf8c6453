"""Async retry logic with exponential backoff."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from cartsync.core.constants import MAX_RETRY_DELAY_SECONDS, RETRY_BACKOFF_BASE

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    initial_delay: float = 0.1,
    max_delay: float = MAX_RETRY_DELAY_SECONDS,
    exponential_base: float = RETRY_BACKOFF_BASE,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    description: str = "operation",
) -> T:
    """Await ``operation`` until it succeeds or attempts run out.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        max_attempts: Maximum number of attempts (at least one is made)
        initial_delay: Delay before the second attempt, in seconds
        max_delay: Cap for the delay between attempts
        exponential_base: Multiplier applied to the delay after each failure
        exceptions: Exception types that trigger another attempt
        description: Label used in log messages

    Raises:
        The last exception once all attempts are exhausted.
    """
    attempts = max(1, max_attempts)
    delay = initial_delay

    for attempt in range(1, attempts):
        try:
            return await operation()
        except exceptions as e:
            logger.warning(
                "%s failed (attempt %s/%s): %s. Retrying in %.2fs...",
                description,
                attempt,
                attempts,
                e,
                delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)

    try:
        return await operation()
    except exceptions as e:
        logger.error("%s failed after %s attempts: %s", description, attempts, e)
        raise
