"""Mock provisioning backends — test doubles for edge-case simulation.

Architecture::

    BaseProvisioningBackend
    └── StubProvisioningBackend   (in-memory, counts calls, injectable failures)
        ├── FailingBackend        (one operation always raises a chosen error)
        ├── SlowBackend           (latency injection per operation)
        └── FlakeyBackend         (first N creates fail with a retryable error)

Example::

    from inceptor.execution.runtimes.mock_adapters import SlowBackend

    # invoke takes 5 seconds; pair with invoke_timeout_seconds=1
    backend = SlowBackend(invoke_delay=5.0)
"""

from __future__ import annotations

import asyncio
from typing import Literal

from inceptor.core.errors import BackendError, ErrorCategory
from inceptor.execution.runtimes._base import StubProvisioningBackend
from inceptor.execution.runtimes._types import (
    EphemeralUnit,
    FunctionSpec,
    InvocationResult,
    UnitDescription,
)

Operation = Literal["create", "invoke", "delete", "describe"]


# ---------------------------------------------------------------------------
# FailingBackend — one operation always raises
# ---------------------------------------------------------------------------

class FailingBackend(StubProvisioningBackend):
    """Backend whose ``operation`` always fails with a configurable error.

    Example::

        backend = FailingBackend("create", category=ErrorCategory.CONFLICT)
        # every create_unit() raises BackendError(CONFLICT)
    """

    def __init__(
        self,
        operation: Operation,
        *,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        message: str = "Simulated failure",
        retryable: bool = False,
        provider_code: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.operation = operation
        self._category = category
        self._message = message
        self._retryable = retryable
        self._provider_code = provider_code

    @property
    def backend_name(self) -> str:
        return "failing"

    def _error(self, name: str) -> BackendError:
        return BackendError(
            f"{self._message}: {name}",
            category=self._category,
            retryable=self._retryable,
            provider_code=self._provider_code,
        )

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        if self.operation == "create":
            self.calls.append(("create", spec.name))
            self.create_count += 1
            raise self._error(spec.name)
        return await super()._do_create(spec)

    async def _do_invoke(self, name: str) -> InvocationResult:
        if self.operation == "invoke":
            self.calls.append(("invoke", name))
            self.invoke_count += 1
            raise self._error(name)
        return await super()._do_invoke(name)

    async def _do_delete(self, name: str) -> None:
        if self.operation == "delete":
            self.calls.append(("delete", name))
            self.delete_count += 1
            raise self._error(name)
        await super()._do_delete(name)

    async def _do_describe(self, name: str) -> UnitDescription:
        if self.operation == "describe":
            self.calls.append(("describe", name))
            self.describe_count += 1
            raise self._error(name)
        return await super()._do_describe(name)


# ---------------------------------------------------------------------------
# SlowBackend — configurable latency injection
# ---------------------------------------------------------------------------

class SlowBackend(StubProvisioningBackend):
    """Backend that sleeps before each operation.

    Useful for testing deadlines, cancellation and the concurrency of the
    preparation stage.
    """

    def __init__(
        self,
        *,
        create_delay: float = 0.0,
        invoke_delay: float = 0.0,
        delete_delay: float = 0.0,
        describe_delay: float = 0.0,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.create_delay = create_delay
        self.invoke_delay = invoke_delay
        self.delete_delay = delete_delay
        self.describe_delay = describe_delay

    @property
    def backend_name(self) -> str:
        return "slow"

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        await asyncio.sleep(self.create_delay)
        return await super()._do_create(spec)

    async def _do_invoke(self, name: str) -> InvocationResult:
        await asyncio.sleep(self.invoke_delay)
        return await super()._do_invoke(name)

    async def _do_delete(self, name: str) -> None:
        await asyncio.sleep(self.delete_delay)
        await super()._do_delete(name)

    async def _do_describe(self, name: str) -> UnitDescription:
        await asyncio.sleep(self.describe_delay)
        return await super()._do_describe(name)


# ---------------------------------------------------------------------------
# FlakeyBackend — transient create failures
# ---------------------------------------------------------------------------

class FlakeyBackend(StubProvisioningBackend):
    """Backend whose first ``create_failures`` creates fail transiently.

    Useful for testing the retry policy.

    Example::

        backend = FlakeyBackend(create_failures=2)
        # 1st and 2nd create_unit() raise BackendError(THROTTLED, retryable)
        # 3rd succeeds
    """

    def __init__(
        self,
        *,
        create_failures: int = 1,
        describe_failures: int = 0,
        failure_category: ErrorCategory = ErrorCategory.THROTTLED,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.create_failures = create_failures
        self.describe_failures = describe_failures
        self.failure_category = failure_category

    @property
    def backend_name(self) -> str:
        return "flakey"

    def _transient(self, name: str) -> BackendError:
        return BackendError(
            f"Rate exceeded: {name}",
            category=self.failure_category,
            retryable=True,
            provider_code="TooManyRequestsException",
        )

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        if self.create_failures > 0:
            self.create_failures -= 1
            self.calls.append(("create", spec.name))
            self.create_count += 1
            raise self._transient(spec.name)
        return await super()._do_create(spec)

    async def _do_describe(self, name: str) -> UnitDescription:
        if self.describe_failures > 0:
            self.describe_failures -= 1
            self.calls.append(("describe", name))
            self.describe_count += 1
            raise self._transient(name)
        return await super()._do_describe(name)
