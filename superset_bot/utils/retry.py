"""
RETRY UTILITY
=============

Awaits a coroutine function and, if it raises a transient error, tries again
a fixed number of times with a fixed short delay. Used around the provider
call so a momentary rate limit or network blip doesn't immediately fail the
request. Errors that are not transient (bad key, malformed response) are
re-raised at once.

Example:
  completion = await with_retry(lambda: provider.complete(turns), max_retries=1, delay=1.0)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar


logger = logging.getLogger("SupersetBot")

# Type variable: with_retry returns whatever the awaited call returns.
T = TypeVar("T")


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 0,
    delay: float = 1.0,
    should_retry: Optional[Callable[[Exception], bool]] = None,
) -> T:
    """
    Await fn(). If it raises and should_retry(exc) is true, sleep `delay` seconds
    and try again, up to max_retries extra attempts. The last exception is re-raised.
    """
    attempts = max(0, max_retries) + 1

    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            retryable = should_retry is None or should_retry(e)
            if not retryable or attempt == attempts - 1:
                raise
            logger.warning(
                "Attempt %s/%s failed. Retrying in %.1fs: %s",
                attempt + 1,
                attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)
