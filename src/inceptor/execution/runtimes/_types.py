"""Provisioning backend types and protocol.

This module defines the abstractions the lifecycle orchestrator works
against:

- ProvisioningBackend: Protocol with the four backend operations
- FunctionSpec: Definition of one ephemeral function
- EphemeralUnit: A created function, owned by one request
- InvocationResult: Raw output of one invocation
- UnitDescription: What the backend reports about an existing function
- UnitState: Lifecycle states of one unit

Architecture:

    .. code-block:: text

        ┌──────────────────────────────────────────────────────────────┐
        │                    _types.py Module Map                      │
        ├──────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ┌────────────────┐   create_unit   ┌────────────────────┐   │
        │  │  FunctionSpec  │ ──────────────► │   EphemeralUnit    │   │
        │  │  name, role,   │                 │   name, arn, role  │   │
        │  │  artifact,     │                 └─────────┬──────────┘   │
        │  │  handler       │                           │ invoke_unit  │
        │  └────────────────┘                 ┌─────────▼──────────┐   │
        │                                     │  InvocationResult  │   │
        │  ┌────────────────┐  describe_unit  │  payload, error    │   │
        │  │UnitDescription │ ◄────────────── └────────────────────┘   │
        │  │  role, arn     │                                          │
        │  └────────────────┘                                          │
        └──────────────────────────────────────────────────────────────┘

    .. mermaid::

        stateDiagram-v2
            [*] --> preparing
            preparing --> creating
            creating --> invoking
            creating --> failed
            invoking --> completed
            invoking --> failed
            completed --> [*]
            failed --> [*]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from inceptor.execution.packaging import ExecutionArtifact


def _utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class UnitState(str, Enum):
    """Lifecycle state of one ephemeral unit."""

    PREPARING = "preparing"
    CREATING = "creating"
    INVOKING = "invoking"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UnitState.COMPLETED, UnitState.FAILED)


@dataclass(frozen=True)
class FunctionSpec:
    """Definition of one ephemeral function.

    Example:
        >>> spec = FunctionSpec(
        ...     name="qwertyuiopasdfgh",
        ...     artifact=ArtifactPackager().package("return 1+1"),
        ...     role="arn:aws:iam::123456789012:role/inceptor",
        ... )
    """

    name: str
    artifact: ExecutionArtifact
    role: str
    handler: str = "handler.main"
    runtime: str = "python3.12"
    description: str = "Invoke the provided codez"
    timeout_seconds: int = 30
    memory_mb: int = 128
    tags: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging. The archive itself is summarised."""
        return {
            "name": self.name,
            "role": self.role,
            "handler": self.handler,
            "runtime": self.runtime,
            "timeout_seconds": self.timeout_seconds,
            "memory_mb": self.memory_mb,
            "artifact_sha256": self.artifact.sha256,
            "artifact_bytes": self.artifact.size_bytes,
        }


@dataclass(frozen=True)
class EphemeralUnit:
    """A created function. Invoked once, then deleted."""

    name: str
    role: str
    arn: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class InvocationResult:
    """Raw output of one invocation.

    ``payload`` is passed through untouched. When the snippet raised,
    ``function_error`` is set (``"Unhandled"``) and the payload holds the
    runtime's error description.
    """

    payload: bytes
    status_code: int = 200
    function_error: str | None = None
    log_result: str | None = None
    executed_version: str | None = None
    duration_ms: float | None = None

    @property
    def text(self) -> str:
        """Payload decoded as UTF-8 (invalid bytes replaced)."""
        return self.payload.decode("utf-8", errors="replace")

    @property
    def succeeded(self) -> bool:
        return self.function_error is None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "status_code": self.status_code,
            "payload_bytes": len(self.payload),
        }
        if self.function_error:
            d["function_error"] = self.function_error
        if self.executed_version:
            d["executed_version"] = self.executed_version
        if self.duration_ms is not None:
            d["duration_ms"] = self.duration_ms
        return d


@dataclass(frozen=True)
class UnitDescription:
    """What the backend reports about an existing function."""

    name: str
    role: str
    arn: str | None = None
    runtime: str | None = None
    state: str | None = None


@runtime_checkable
class ProvisioningBackend(Protocol):
    """Protocol for compute provisioning backends.

    The orchestrator and the identity resolver interact with the backend
    exclusively through these four operations. All of them are async.

    .. code-block:: text

        ProvisioningBackend Protocol
        ┌─────────────────────────────────────────────────────────────┐
        │  create_unit(spec) → EphemeralUnit    Provision a function  │
        │  invoke_unit(name) → InvocationResult Run it synchronously  │
        │  delete_unit(name) → None             Remove it             │
        │  describe_unit(name) → UnitDescription Look one up          │
        └─────────────────────────────────────────────────────────────┘

    Raises:
        BackendError from any operation, classified by category and
        retryable flag.
    """

    @property
    def backend_name(self) -> str:
        """Unique name for this backend (e.g. 'lambda', 'stub')."""
        ...

    async def create_unit(self, spec: FunctionSpec) -> EphemeralUnit:
        """Create a function from ``spec``. Fails on a name conflict."""
        ...

    async def invoke_unit(self, name: str) -> InvocationResult:
        """Invoke a function once, synchronously, with no payload."""
        ...

    async def delete_unit(self, name: str) -> None:
        """Delete a function."""
        ...

    async def describe_unit(self, name: str) -> UnitDescription:
        """Describe an existing function (used to find the host's own role)."""
        ...
