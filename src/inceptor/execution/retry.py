"""Retry strategies for backend calls.

Only idempotent backend calls go through a retry policy: creating the
function and describing the host function. Invocations are never retried
since a second attempt could run the snippet twice.

By default no retries are made (``max_retries=0``). Only errors flagged
``retryable`` by the backend are retried, so name conflicts and rejected
definitions fail immediately.

Example:
    >>> from inceptor.execution.retry import ExponentialBackoff, RetryContext
    >>>
    >>> strategy = ExponentialBackoff(max_retries=3, base_delay=0.5, max_delay=10.0)
    >>> for attempt in range(3):
    ...     delay = strategy.next_delay(attempt)
    ...     print(f"Retry {attempt}: wait {delay:.2f}s")
"""

from __future__ import annotations

import asyncio
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from inceptor.core.errors import is_retryable
from inceptor.core.settings import InceptorSettings

T = TypeVar("T")


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before the next retry.

        Args:
            attempt: Zero-based retry number (0 = first retry)

        Returns:
            Delay in seconds
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Number of retries already made
            error: The exception that caused the failure
        """
        ...


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Exponential backoff with optional jitter.

    Delay = min(base_delay * (multiplier ** attempt), max_delay) ± jitter

    Attributes:
        max_retries: Maximum number of retries after the first attempt
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        multiplier: Exponential multiplier
        jitter: Add randomness to prevent thundering herd
        jitter_range: Range of jitter as fraction of delay (0.0-1.0)
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: bool = True
    jitter_range: float = 0.25

    def next_delay(self, attempt: int) -> float:
        delay = min(
            self.base_delay * (self.multiplier ** attempt),
            self.max_delay,
        )

        if self.jitter:
            jitter_amount = delay * self.jitter_range
            delay += random.uniform(-jitter_amount, jitter_amount)
            delay = max(0, delay)

        return delay

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        if attempt >= self.max_retries:
            return False
        if error is not None:
            return is_retryable(error)
        return True


@dataclass
class NoRetry(RetryStrategy):
    """No retry - fail immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, attempt: int, error: BaseException | None = None) -> bool:
        return False


def strategy_from_settings(settings: InceptorSettings) -> RetryStrategy:
    """Build the retry strategy configured for backend calls."""
    if settings.max_retries <= 0:
        return NoRetry()
    return ExponentialBackoff(
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        max_delay=settings.retry_max_delay,
    )


@dataclass
class RetryContext:
    """Tracks the attempts of one retried operation.

    Example:
        >>> ctx = RetryContext(ExponentialBackoff(max_retries=3))
        >>> unit = await ctx.run_async(backend.create_unit, spec)
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, BaseException, float], None] | None = None
    attempt: int = field(default=0, init=False)
    started_at: datetime = field(default_factory=utcnow, init=False)

    @property
    def elapsed_seconds(self) -> float:
        """Total elapsed time since first attempt."""
        return (utcnow() - self.started_at).total_seconds()

    @property
    def retries(self) -> int:
        """Number of retries made (attempts after the first)."""
        return max(0, self.attempt - 1)

    async def run_async(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute an async function with retry logic.

        Raises:
            The last exception once the strategy declines another retry
        """
        while True:
            self.attempt += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                retries_made = self.attempt - 1
                if not self.strategy.should_retry(retries_made, e):
                    raise

                delay = self.strategy.next_delay(retries_made)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                await asyncio.sleep(delay)
