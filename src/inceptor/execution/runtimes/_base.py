"""Base provisioning backend with shared logging and error wrapping.

Provides ``BaseProvisioningBackend`` with the common call pattern and
``StubProvisioningBackend``, an in-memory backend for unit tests.

Architecture:

    .. code-block:: text

        ProvisioningBackend (Protocol)
              │
              ▼
        BaseProvisioningBackend
        ├── create_unit()   → logging + error wrapping → _do_create()
        ├── invoke_unit()   → logging + error wrapping → _do_invoke()
        ├── delete_unit()   → logging + error wrapping → _do_delete()
        └── describe_unit() → error wrapping           → _do_describe()
              │
        ┌─────┴───────────────────────┐
        │                             │
        ▼                             ▼
    LambdaBackend              StubProvisioningBackend
    (boto3)                    (in-memory for tests)

Usage:
    backend = StubProvisioningBackend(payload=b"2")
    unit = await backend.create_unit(spec)
    result = await backend.invoke_unit(unit.name)
    assert backend.invoke_count == 1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from inceptor.core.errors import BackendError, ErrorCategory, InceptorError
from inceptor.execution.runtimes._types import (
    EphemeralUnit,
    FunctionSpec,
    InvocationResult,
    UnitDescription,
    _utcnow,
)

logger = logging.getLogger(__name__)


class BaseProvisioningBackend:
    """Base class for provisioning backends.

    Subclasses MUST implement:
        _do_create, _do_invoke, _do_delete, _do_describe

    The base class wraps each call with logging and converts any exception
    that is not already an ``InceptorError`` into ``BackendError(UNKNOWN,
    retryable=True)``.
    """

    @property
    def backend_name(self) -> str:
        raise NotImplementedError

    async def create_unit(self, spec: FunctionSpec) -> EphemeralUnit:
        logger.info(
            "Creating function '%s' on %s (runtime=%s, handler=%s)",
            spec.name, self.backend_name, spec.runtime, spec.handler,
        )
        unit = await self._call("create", spec.name, self._do_create(spec))
        logger.info("Function '%s' created: arn=%s", unit.name, unit.arn)
        return unit

    async def invoke_unit(self, name: str) -> InvocationResult:
        logger.info("Invoking function '%s' on %s", name, self.backend_name)
        result = await self._call("invoke", name, self._do_invoke(name))
        logger.info(
            "Function '%s' returned status=%s function_error=%s",
            name, result.status_code, result.function_error,
        )
        return result

    async def delete_unit(self, name: str) -> None:
        logger.info("Deleting function '%s' on %s", name, self.backend_name)
        await self._call("delete", name, self._do_delete(name))
        logger.info("Function '%s' deleted", name)

    async def describe_unit(self, name: str) -> UnitDescription:
        return await self._call("describe", name, self._do_describe(name))

    async def _call(self, operation: str, name: str, coro):
        try:
            return await coro
        except InceptorError:
            raise
        except Exception as exc:
            logger.error(
                "%s failed for '%s' on %s: %s",
                operation.capitalize(), name, self.backend_name, exc,
            )
            raise BackendError(
                f"{operation.capitalize()} failed: {exc}",
                category=ErrorCategory.UNKNOWN,
                retryable=True,
                cause=exc,
            ).with_context(function_name=name, backend=self.backend_name) from exc

    # --- Abstract methods for subclasses ---

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        raise NotImplementedError

    async def _do_invoke(self, name: str) -> InvocationResult:
        raise NotImplementedError

    async def _do_delete(self, name: str) -> None:
        raise NotImplementedError

    async def _do_describe(self, name: str) -> UnitDescription:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Stub backend for testing
# ---------------------------------------------------------------------------

@dataclass
class _StubFunction:
    """Internal state for a stubbed function."""

    spec: FunctionSpec
    arn: str
    created_at: datetime = field(default_factory=_utcnow)
    invocations: int = 0


class StubProvisioningBackend(BaseProvisioningBackend):
    """In-memory provisioning backend for unit tests.

    .. code-block:: text

        Inject failures:
          backend.fail_create = True    → create_unit() raises BackendError
          backend.fail_invoke = True    → invoke_unit() raises BackendError
          backend.fail_delete = True    → delete_unit() raises BackendError
          backend.fail_describe = True  → describe_unit() raises BackendError

        Track usage:
          backend.create_count, invoke_count, delete_count, describe_count
          backend.calls → ordered list of (operation, name)

    Existing functions (e.g. the host itself) can be seeded with
    ``add_existing(name, role)``.
    """

    def __init__(
        self,
        *,
        payload: bytes = b"null",
        function_error: str | None = None,
        role: str = "arn:aws:iam::000000000000:role/stub",
        account: str = "000000000000",
    ) -> None:
        self.payload = payload
        self.function_error = function_error
        self.account = account

        self.functions: dict[str, _StubFunction] = {}
        self.existing: dict[str, UnitDescription] = {}
        self.calls: list[tuple[str, str]] = []
        self.created_specs: list[FunctionSpec] = []
        self.create_count: int = 0
        self.invoke_count: int = 0
        self.delete_count: int = 0
        self.describe_count: int = 0

        self.fail_create: bool = False
        self.fail_invoke: bool = False
        self.fail_delete: bool = False
        self.fail_describe: bool = False

        self.default_role = role

    @property
    def backend_name(self) -> str:
        return "stub"

    def _arn(self, name: str) -> str:
        return f"arn:aws:lambda:us-east-1:{self.account}:function:{name}"

    def add_existing(self, name: str, role: str | None = None) -> UnitDescription:
        """Seed a pre-existing function, such as the host itself."""
        description = UnitDescription(
            name=name,
            role=role or self.default_role,
            arn=self._arn(name),
            runtime="provided.al2023",
            state="Active",
        )
        self.existing[name] = description
        return description

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        self.calls.append(("create", spec.name))
        self.create_count += 1
        if self.fail_create:
            raise BackendError(
                "Stub: create failure injected",
                category=ErrorCategory.VALIDATION,
                retryable=False,
            )
        if spec.name in self.functions or spec.name in self.existing:
            raise BackendError(
                f"Function already exist: {spec.name}",
                category=ErrorCategory.CONFLICT,
                retryable=False,
                provider_code="ResourceConflictException",
            )
        self.created_specs.append(spec)
        fn = _StubFunction(spec=spec, arn=self._arn(spec.name))
        self.functions[spec.name] = fn
        return EphemeralUnit(name=spec.name, role=spec.role, arn=fn.arn, created_at=fn.created_at)

    async def _do_invoke(self, name: str) -> InvocationResult:
        self.calls.append(("invoke", name))
        self.invoke_count += 1
        if self.fail_invoke:
            raise BackendError(
                "Stub: invoke failure injected",
                category=ErrorCategory.NETWORK,
                retryable=True,
            )
        fn = self.functions.get(name)
        if fn is None:
            raise BackendError(
                f"Function not found: {self._arn(name)}",
                category=ErrorCategory.NOT_FOUND,
                retryable=False,
                provider_code="ResourceNotFoundException",
            )
        fn.invocations += 1
        return InvocationResult(
            payload=self.payload,
            status_code=200,
            function_error=self.function_error,
            executed_version="$LATEST",
        )

    async def _do_delete(self, name: str) -> None:
        self.calls.append(("delete", name))
        self.delete_count += 1
        if self.fail_delete:
            raise BackendError(
                "Stub: delete failure injected",
                category=ErrorCategory.NETWORK,
                retryable=True,
            )
        self.functions.pop(name, None)

    async def _do_describe(self, name: str) -> UnitDescription:
        self.calls.append(("describe", name))
        self.describe_count += 1
        if self.fail_describe:
            raise BackendError(
                "Stub: describe failure injected",
                category=ErrorCategory.AUTH,
                retryable=False,
            )
        if name in self.existing:
            return self.existing[name]
        fn = self.functions.get(name)
        if fn is None:
            raise BackendError(
                f"Function not found: {self._arn(name)}",
                category=ErrorCategory.NOT_FOUND,
                retryable=False,
                provider_code="ResourceNotFoundException",
            )
        return UnitDescription(
            name=name,
            role=fn.spec.role,
            arn=fn.arn,
            runtime=fn.spec.runtime,
            state="Active",
        )
