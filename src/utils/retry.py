"""
Retry helper for optimistic stats writes.

A write that loses a version race raises StatsWriteConflict; the caller
re-reads the row and tries again after an exponentially growing, jittered
pause.
"""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional, Sequence, Type, TypeVar

from ..domain.errors import StatsWriteConflict

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Only lost races are worth another attempt
RETRYABLE: tuple = (StatsWriteConflict,)


class RetryConfig:
    """Backoff schedule for ``with_retry``."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 0.05,
        max_delay: float = 2.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        jitter_max: float = 0.5,
        exceptions: Sequence[Type[Exception]] = RETRYABLE,
    ):
        """
        Args:
            max_attempts: Attempts in total, the first one included
            base_delay: Pause after the first failure, in seconds
            max_delay: Upper bound of a single pause
            exponential_base: Growth factor of the pause per attempt
            jitter: Add up to ``jitter_max`` of the pause at random
            jitter_max: Fraction of the pause used as jitter ceiling
            exceptions: Exception types that trigger another attempt
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.jitter_max = jitter_max
        self.exceptions = tuple(exceptions)

    def delay_for(self, attempt: int) -> float:
        """Pause before retrying after failed *attempt* (0-indexed)."""
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)
        if self.jitter:
            delay += delay * random.uniform(0, self.jitter_max)
        return delay


async def with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 0.05,
    exceptions: Sequence[Type[Exception]] = RETRYABLE,
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs: Any,
) -> T:
    """
    Await ``func(*args, **kwargs)``, retrying on the given exceptions.

    Usage:
        await with_retry(
            self._incremental_once,
            change,
            scope_id,
            max_attempts=config.write_max_attempts,
        )

    Args:
        func: Coroutine function performing one read-modify-write
        max_attempts: Attempts in total (ignored when ``config`` is given)
        base_delay: First pause (ignored when ``config`` is given)
        exceptions: Retryable exception types (ignored when ``config`` is given)
        config: Full backoff schedule
        on_retry: Called with (exception, attempt number) before each pause

    Raises:
        The last retryable exception once attempts are exhausted; any other
        exception immediately.
    """
    if config is None:
        config = RetryConfig(
            max_attempts=max_attempts, base_delay=base_delay, exceptions=exceptions
        )
    name = getattr(func, "__name__", repr(func))

    for attempt in range(config.max_attempts):
        try:
            return await func(*args, **kwargs)
        except config.exceptions as e:
            if attempt == config.max_attempts - 1:
                logger.error(
                    f"{name} failed after {config.max_attempts} attempt(s): "
                    f"{type(e).__name__}: {e}"
                )
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"{name} attempt {attempt + 1}/{config.max_attempts} lost a race "
                f"({e}); retrying in {delay:.2f}s"
            )
            if on_retry:
                on_retry(e, attempt + 1)
            await asyncio.sleep(delay)

    raise RuntimeError(f"Retry loop for {name} ended without a result")
