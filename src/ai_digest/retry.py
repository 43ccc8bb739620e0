"""Exponential backoff for provider rate limits."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import anthropic

from ai_digest.errors import RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_rate_limit_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    retries: int = 3,
    base_delay: float = 10.0,
) -> T:
    """Await ``fn()``, retrying only on ``anthropic.RateLimitError``.

    Delays double per attempt (10s then 20s with the defaults). Any other
    exception propagates immediately.

    Args:
        fn: Zero-argument coroutine factory making the provider call.
        retries: Total number of attempts.
        base_delay: Delay in seconds before the second attempt.

    Raises:
        RateLimitError: If the last attempt is still rate limited.
    """
    for attempt in range(retries):
        try:
            return await fn()
        except anthropic.RateLimitError as e:
            if attempt >= retries - 1:
                raise RateLimitError(f"Rate limited after {retries} attempts") from e
            wait = base_delay * (2**attempt)
            logger.warning(
                "Rate limited (attempt %d/%d), retrying in %.1fs", attempt + 1, retries, wait
            )
            await asyncio.sleep(wait)

    raise RateLimitError("Max retries exceeded")
