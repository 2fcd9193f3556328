"""Retry policy implementation with exponential backoff and jitter."""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar
import logging

T = TypeVar("T")


def compute_backoff(
    attempt: int,
    base: float,
    max_delay: float,
    jitter_ratio: float
) -> float:
    """
    Compute exponential backoff delay with jitter.

    Args:
        attempt: Attempt number (0-based)
        base: Base delay in seconds
        max_delay: Maximum delay in seconds
        jitter_ratio: Jitter ratio (0.0 to 1.0)

    Returns:
        Delay in seconds (never negative)
    """
    # Exponential backoff: base * 2^attempt
    delay = min(max_delay, base * (2 ** attempt))

    # Add jitter: ±jitter_ratio of the delay
    jitter = random.uniform(-jitter_ratio, jitter_ratio) * delay

    return max(0.0, delay + jitter)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    base_delay: float,
    max_delay: float,
    retry_on: Tuple[Type[BaseException], ...],
    jitter_ratio: float = 0.2,
    logger: Optional[logging.Logger] = None,
    description: str = "operation",
) -> T:
    """
    Await ``operation`` until it succeeds or ``attempts`` are exhausted.

    Only exceptions listed in ``retry_on`` trigger another attempt; anything
    else propagates immediately. The last retryable exception is re-raised
    once all attempts have failed.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(attempts):
        try:
            return await operation()
        except retry_on as exc:
            if attempt == attempts - 1:
                raise
            delay = compute_backoff(attempt, base_delay, max_delay, jitter_ratio)
            if logger:
                logger.warning(
                    f"{description} failed (attempt {attempt + 1}/{attempts}): "
                    f"{type(exc).__name__}: {exc}; retrying in {delay:.2f}s"
                )
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
