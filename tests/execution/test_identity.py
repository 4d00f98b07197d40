"""Tests for IdentityResolver."""

from __future__ import annotations

import pytest

from conftest import HOST_FUNCTION, HOST_ROLE
from inceptor.core.errors import ErrorCategory, IdentityResolutionError
from inceptor.execution.identity import IdentityResolver
from inceptor.execution.retry import ExponentialBackoff
from inceptor.execution.runtimes.mock_adapters import FlakeyBackend


class TestResolve:
    @pytest.mark.asyncio
    async def test_uses_host_role(self, host_env, stub_backend, settings):
        resolver = IdentityResolver(stub_backend, settings=settings)
        assert await resolver.resolve() == HOST_ROLE
        assert stub_backend.calls == [("describe", HOST_FUNCTION)]

    @pytest.mark.asyncio
    async def test_role_is_looked_up_every_time(self, host_env, stub_backend, settings):
        resolver = IdentityResolver(stub_backend, settings=settings)
        await resolver.resolve()
        stub_backend.add_existing(HOST_FUNCTION, "arn:aws:iam::123456789012:role/rotated")
        assert await resolver.resolve() == "arn:aws:iam::123456789012:role/rotated"
        assert stub_backend.describe_count == 2

    @pytest.mark.asyncio
    async def test_static_role_skips_lookup(self, stub_backend, settings):
        static = settings.model_copy(update={"execution_role": "arn:aws:iam::1:role/static"})
        resolver = IdentityResolver(stub_backend, settings=static, environ={})
        assert await resolver.resolve() == "arn:aws:iam::1:role/static"
        assert stub_backend.describe_count == 0

    @pytest.mark.asyncio
    async def test_custom_environ(self, stub_backend, settings):
        resolver = IdentityResolver(stub_backend, settings=settings, environ={"AWS_LAMBDA_FUNCTION_NAME": HOST_FUNCTION})
        assert await resolver.resolve() == HOST_ROLE


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_host_name(self, stub_backend, settings):
        resolver = IdentityResolver(stub_backend, settings=settings, environ={})
        with pytest.raises(IdentityResolutionError, match="AWS_LAMBDA_FUNCTION_NAME"):
            await resolver.resolve()
        assert stub_backend.describe_count == 0

    @pytest.mark.asyncio
    async def test_backend_failure_is_wrapped(self, host_env, stub_backend, settings):
        stub_backend.fail_describe = True
        resolver = IdentityResolver(stub_backend, settings=settings)
        with pytest.raises(IdentityResolutionError) as exc_info:
            await resolver.resolve()
        assert exc_info.value.category == ErrorCategory.IDENTITY
        assert exc_info.value.cause.category == ErrorCategory.AUTH

    @pytest.mark.asyncio
    async def test_unknown_host(self, settings):
        from inceptor.execution.runtimes._base import StubProvisioningBackend

        resolver = IdentityResolver(
            StubProvisioningBackend(), settings=settings, environ={"AWS_LAMBDA_FUNCTION_NAME": "ghost"},
        )
        with pytest.raises(IdentityResolutionError, match="ghost"):
            await resolver.resolve()

    @pytest.mark.asyncio
    async def test_transient_lookup_failure_is_retried(self, settings):
        backend = FlakeyBackend(create_failures=0, describe_failures=1)
        backend.add_existing(HOST_FUNCTION, HOST_ROLE)
        resolver = IdentityResolver(
            backend,
            settings=settings,
            retry_strategy=ExponentialBackoff(max_retries=1, base_delay=0.0, jitter=False),
            environ={"AWS_LAMBDA_FUNCTION_NAME": HOST_FUNCTION},
        )
        assert await resolver.resolve() == HOST_ROLE
        assert backend.describe_count == 2
