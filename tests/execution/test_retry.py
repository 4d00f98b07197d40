"""Tests for retry strategies and RetryContext."""

from __future__ import annotations

import pytest

from inceptor.core.errors import BackendError, ErrorCategory
from inceptor.core.settings import InceptorSettings
from inceptor.execution.retry import (
    ExponentialBackoff,
    NoRetry,
    RetryContext,
    strategy_from_settings,
)


def _transient() -> BackendError:
    return BackendError("throttled", category=ErrorCategory.THROTTLED, retryable=True)


def _permanent() -> BackendError:
    return BackendError("conflict", category=ErrorCategory.CONFLICT, retryable=False)


class TestExponentialBackoff:
    def test_delays_grow_and_cap(self):
        strategy = ExponentialBackoff(base_delay=1.0, max_delay=5.0, jitter=False)
        assert [strategy.next_delay(i) for i in range(4)] == [1.0, 2.0, 4.0, 5.0]

    def test_jitter_stays_in_range(self):
        strategy = ExponentialBackoff(base_delay=1.0, jitter=True, jitter_range=0.25)
        for _ in range(100):
            assert 0.75 <= strategy.next_delay(0) <= 1.25

    def test_should_retry_respects_limit(self):
        strategy = ExponentialBackoff(max_retries=2)
        assert strategy.should_retry(0, _transient())
        assert strategy.should_retry(1, _transient())
        assert not strategy.should_retry(2, _transient())

    def test_permanent_errors_are_not_retried(self):
        assert not ExponentialBackoff(max_retries=5).should_retry(0, _permanent())


class TestStrategyFromSettings:
    def test_zero_retries_is_no_retry(self):
        assert isinstance(strategy_from_settings(InceptorSettings(_env_file=None)), NoRetry)

    def test_configured_backoff(self):
        strategy = strategy_from_settings(
            InceptorSettings(_env_file=None, max_retries=3, retry_base_delay=0.1, retry_max_delay=1.0)
        )
        assert isinstance(strategy, ExponentialBackoff)
        assert strategy.max_retries == 3
        assert strategy.base_delay == 0.1
        assert strategy.max_delay == 1.0


class TestRetryContext:
    @pytest.mark.asyncio
    async def test_success_first_try(self):
        ctx = RetryContext(NoRetry())

        async def ok():
            return "done"

        assert await ctx.run_async(ok) == "done"
        assert ctx.attempt == 1
        assert ctx.retries == 0

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self):
        calls = []
        retried = []

        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise _transient()
            return "ok"

        ctx = RetryContext(
            ExponentialBackoff(max_retries=2, base_delay=0.0, jitter=False),
            on_retry=lambda attempt, error, delay: retried.append(attempt),
        )
        assert await ctx.run_async(flaky) == "ok"
        assert len(calls) == 3
        assert retried == [1, 2]
        assert ctx.retries == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        calls = []

        async def always_fails():
            calls.append(1)
            raise _transient()

        ctx = RetryContext(ExponentialBackoff(max_retries=2, base_delay=0.0, jitter=False))
        with pytest.raises(BackendError):
            await ctx.run_async(always_fails)
        assert len(calls) == 3
        assert ctx.attempt == 3
        assert ctx.elapsed_seconds >= 0

    @pytest.mark.asyncio
    async def test_permanent_error_fails_immediately(self):
        calls = []

        async def conflict():
            calls.append(1)
            raise _permanent()

        ctx = RetryContext(ExponentialBackoff(max_retries=5, base_delay=0.0))
        with pytest.raises(BackendError, match="conflict"):
            await ctx.run_async(conflict)
        assert len(calls) == 1
