"""Bounded async retry with optional exponential backoff."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

log = logging.getLogger(__name__)


def compute_delay(base_delay: float, attempt: int, exponential_backoff: bool) -> float:
    """Delay in seconds to wait after the given (1-based) failed attempt."""
    if exponential_backoff:
        return base_delay * (2 ** (attempt - 1))
    return base_delay


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int,
    base_delay: float,
    exponential_backoff: bool = True,
    context: str = "operation",
) -> T:
    """
    Run an async operation up to `max_attempts` times.

    Any `Exception` counts as a failure; error kinds are not distinguished.
    Waits are cooperative (`asyncio.sleep`) and are skipped after the last
    attempt. The last error is re-raised once attempts are exhausted.

    Args:
        operation: Zero-argument callable returning an awaitable.
        max_attempts: Total number of invocations allowed (>= 1).
        base_delay: Base wait in seconds.
        exponential_backoff: Wait `base_delay * 2 ** (attempt - 1)` instead of a flat `base_delay`.
        context: Label used in log messages.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            log.warning(
                "Error occurred during %s (attempt %d/%d): %s",
                context, attempt, max_attempts, exc,
            )
            if attempt == max_attempts:
                raise

        await asyncio.sleep(compute_delay(base_delay, attempt, exponential_backoff))
