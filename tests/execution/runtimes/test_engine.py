"""Tests for LifecycleOrchestrator — create → invoke → detached destroy."""

from __future__ import annotations

import asyncio

import pytest

from inceptor.core.errors import CreationError, ErrorCategory, InvocationError
from inceptor.core.settings import InceptorSettings
from inceptor.execution.packaging import ArtifactPackager
from inceptor.execution.retry import ExponentialBackoff, NoRetry
from inceptor.execution.runtimes._base import StubProvisioningBackend
from inceptor.execution.runtimes._types import UnitState
from inceptor.execution.runtimes.engine import LifecycleOrchestrator
from inceptor.execution.runtimes.mock_adapters import FailingBackend, FlakeyBackend, SlowBackend

ROLE = "arn:aws:iam::123456789012:role/inceptor"
NAME = "abcdefghijklmnop"


# ── Helpers ──────────────────────────────────────────────────────────────


@pytest.fixture()
def artifact():
    return ArtifactPackager().package("return 1+1")


@pytest.fixture()
def fast_settings() -> InceptorSettings:
    return InceptorSettings(_env_file=None, create_timeout_seconds=0.2, invoke_timeout_seconds=0.2)


def _orchestrator(backend, settings=None, retry_strategy=None) -> LifecycleOrchestrator:
    return LifecycleOrchestrator(
        backend,
        settings=settings or InceptorSettings(_env_file=None),
        retry_strategy=retry_strategy or NoRetry(),
    )


# ── Happy path ───────────────────────────────────────────────────────────


class TestRun:
    @pytest.mark.asyncio
    async def test_returns_payload_and_deletes_once(self, artifact):
        backend = StubProvisioningBackend(payload=b"2")
        orch = _orchestrator(backend)

        result = await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert result.payload == b"2"
        assert backend.calls == [("create", NAME), ("invoke", NAME), ("delete", NAME)]
        assert backend.delete_count == 1
        assert orch.pending_deletions == 0

    @pytest.mark.asyncio
    async def test_spec_built_from_settings(self, artifact):
        backend = StubProvisioningBackend()
        settings = InceptorSettings(
            _env_file=None, runtime="python3.11", function_timeout_seconds=10, function_memory_mb=256,
        )
        await _orchestrator(backend, settings).run(artifact, NAME, ROLE)

        spec = backend.created_specs[0]
        assert spec.name == NAME
        assert spec.role == ROLE
        assert spec.runtime == "python3.11"
        assert spec.handler == "handler.main"
        assert spec.timeout_seconds == 10
        assert spec.memory_mb == 256
        assert spec.artifact is artifact

    @pytest.mark.asyncio
    async def test_returns_before_deletion_finishes(self, artifact):
        backend = SlowBackend(delete_delay=0.5, payload=b"ok")
        orch = _orchestrator(backend)

        result = await orch.run(artifact, NAME, ROLE)

        assert result.payload == b"ok"
        assert orch.pending_deletions == 1
        assert backend.delete_count == 0
        await orch.drain()
        assert backend.delete_count == 1
        assert orch.pending_deletions == 0

    @pytest.mark.asyncio
    async def test_function_error_payload_passes_through(self, artifact):
        backend = StubProvisioningBackend(
            payload=b'{"errorMessage": "division by zero", "errorType": "ZeroDivisionError"}',
            function_error="Unhandled",
        )
        orch = _orchestrator(backend)
        result = await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert not result.succeeded
        assert b"ZeroDivisionError" in result.payload
        assert backend.delete_count == 1

    @pytest.mark.asyncio
    async def test_state_tracking(self, artifact):
        backend = SlowBackend(delete_delay=0.2)
        orch = _orchestrator(backend)
        await orch.run(artifact, NAME, ROLE)
        assert orch.state_of(NAME) == UnitState.COMPLETED
        assert orch.state_of(NAME).is_terminal
        await orch.drain()
        assert orch.state_of(NAME) is None


# ── Failure ordering ─────────────────────────────────────────────────────


class TestCreateFailure:
    @pytest.mark.asyncio
    async def test_no_invoke_no_delete(self, artifact):
        backend = StubProvisioningBackend()
        backend.fail_create = True
        orch = _orchestrator(backend)

        with pytest.raises(CreationError, match="Could not create lambda function") as exc_info:
            await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert backend.invoke_count == 0
        assert backend.delete_count == 0
        assert exc_info.value.context.function_name == NAME
        assert exc_info.value.context.stage == "create"

    @pytest.mark.asyncio
    async def test_name_conflict_is_not_retried(self, artifact):
        backend = StubProvisioningBackend()
        backend.add_existing(NAME)
        orch = _orchestrator(backend, retry_strategy=ExponentialBackoff(max_retries=3, base_delay=0.0))

        with pytest.raises(CreationError) as exc_info:
            await orch.run(artifact, NAME, ROLE)

        assert backend.create_count == 1
        assert exc_info.value.cause.category == ErrorCategory.CONFLICT
        assert exc_info.value.context.metadata["provider_code"] == "ResourceConflictException"

    @pytest.mark.asyncio
    async def test_timeout(self, artifact, fast_settings):
        backend = SlowBackend(create_delay=5.0)
        orch = _orchestrator(backend, fast_settings)

        with pytest.raises(CreationError, match="timed out"):
            await orch.run(artifact, NAME, ROLE)
        assert backend.invoke_count == 0
        assert backend.delete_count == 0
        assert orch.state_of(NAME) is None


class TestInvokeFailure:
    @pytest.mark.asyncio
    async def test_delete_still_called_once(self, artifact):
        backend = StubProvisioningBackend()
        backend.fail_invoke = True
        orch = _orchestrator(backend)

        with pytest.raises(InvocationError, match="Could not invoke lambda function"):
            await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert backend.delete_count == 1
        assert backend.calls[-1] == ("delete", NAME)

    @pytest.mark.asyncio
    async def test_invoke_is_never_retried(self, artifact):
        backend = FailingBackend("invoke", category=ErrorCategory.NETWORK, retryable=True)
        orch = _orchestrator(backend, retry_strategy=ExponentialBackoff(max_retries=3, base_delay=0.0))

        with pytest.raises(InvocationError):
            await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert backend.invoke_count == 1
        assert backend.delete_count == 1

    @pytest.mark.asyncio
    async def test_timeout_still_deletes(self, artifact, fast_settings):
        backend = SlowBackend(invoke_delay=5.0)
        orch = _orchestrator(backend, fast_settings)

        with pytest.raises(InvocationError, match="timed out"):
            await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert backend.delete_count == 1
        assert orch.state_of(NAME) is None


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_invoke_still_deletes(self, artifact):
        backend = SlowBackend(invoke_delay=5.0)
        orch = _orchestrator(backend)

        task = asyncio.create_task(orch.run(artifact, NAME, ROLE))
        while backend.create_count == 0 or NAME not in backend.functions:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await orch.drain()

        assert backend.delete_count == 1

    @pytest.mark.asyncio
    async def test_cancel_during_create_does_not_delete(self, artifact):
        backend = SlowBackend(create_delay=5.0)
        orch = _orchestrator(backend)

        task = asyncio.create_task(orch.run(artifact, NAME, ROLE))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await orch.drain()

        assert backend.invoke_count == 0
        assert backend.delete_count == 0


class TestDeletionFailure:
    @pytest.mark.asyncio
    async def test_is_swallowed(self, artifact):
        backend = StubProvisioningBackend(payload=b"fine")
        backend.fail_delete = True
        orch = _orchestrator(backend)

        result = await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert result.payload == b"fine"
        assert backend.delete_count == 1
        assert orch.pending_deletions == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_swallowed(self, artifact):
        class ExplodingDelete(StubProvisioningBackend):
            async def delete_unit(self, name):
                raise RuntimeError("socket closed")

        orch = _orchestrator(ExplodingDelete())
        await orch.run(artifact, NAME, ROLE)
        await orch.drain()
        assert orch.pending_deletions == 0


# ── Retries ──────────────────────────────────────────────────────────────


class TestRetries:
    @pytest.mark.asyncio
    async def test_transient_create_failures_are_retried(self, artifact):
        backend = FlakeyBackend(create_failures=2, payload=b"3")
        orch = _orchestrator(backend, retry_strategy=ExponentialBackoff(max_retries=2, base_delay=0.0, jitter=False))

        result = await orch.run(artifact, NAME, ROLE)
        await orch.drain()

        assert result.payload == b"3"
        assert backend.create_count == 3
        assert backend.delete_count == 1

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_retries(self, artifact):
        backend = FlakeyBackend(create_failures=5)
        orch = _orchestrator(backend, retry_strategy=ExponentialBackoff(max_retries=1, base_delay=0.0, jitter=False))

        with pytest.raises(CreationError) as exc_info:
            await orch.run(artifact, NAME, ROLE)

        assert backend.create_count == 2
        assert exc_info.value.retryable is True
        assert backend.invoke_count == 0

    @pytest.mark.asyncio
    async def test_default_is_no_retry(self, artifact):
        backend = FlakeyBackend(create_failures=1)
        orch = LifecycleOrchestrator(backend, settings=InceptorSettings(_env_file=None))

        with pytest.raises(CreationError):
            await orch.run(artifact, NAME, ROLE)
        assert backend.create_count == 1
