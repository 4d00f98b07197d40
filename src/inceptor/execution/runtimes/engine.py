"""Lifecycle Orchestrator — create, invoke and discard one ephemeral unit.

The ``LifecycleOrchestrator`` sequences the three backend calls for a
single snippet and guarantees the unit never outlives the request that
created it.

Architecture:

    .. code-block:: text

        LifecycleOrchestrator
        ┌─────────────────────────────────────────────────────────────┐
        │                                                             │
        │  run(artifact, identifier, identity)                        │
        │    ├── create()   deadline + retry policy                   │
        │    │     └── failure → CreationError (nothing to clean up)  │
        │    ├── invoke()   deadline, never retried                   │
        │    │     └── failure → InvocationError                      │
        │    └── finally: destroy()                                   │
        │          └── detached task → backend.delete_unit()          │
        │                failure → DeletionError, logged, swallowed   │
        │                                                             │
        │  drain()  wait for outstanding deletions (shutdown, tests)  │
        │                                                             │
        └─────────────────────────────────────────────────────────────┘

    .. mermaid::

        sequenceDiagram
            participant P as Pipeline
            participant O as Orchestrator
            participant B as Backend

            P->>O: run(artifact, name, role)
            O->>B: create_unit(spec)
            B-->>O: EphemeralUnit
            O->>B: invoke_unit(name)
            B-->>O: InvocationResult
            O-)B: delete_unit(name)  (detached)
            O-->>P: InvocationResult

Example:
    >>> from inceptor.execution.runtimes import LifecycleOrchestrator
    >>> from inceptor.execution.runtimes._base import StubProvisioningBackend
    >>>
    >>> backend = StubProvisioningBackend(payload=b"2")
    >>> orchestrator = LifecycleOrchestrator(backend)
    >>> result = await orchestrator.run(artifact, "abcdefghijklmnop", role)
    >>> await orchestrator.drain()
    >>> backend.delete_count
    1

Tags:
    inceptor, execution, runtimes, orchestrator, lifecycle
"""

from __future__ import annotations

import asyncio
import logging

from inceptor.core.errors import (
    BackendError,
    CreationError,
    DeletionError,
    InvocationError,
)
from inceptor.core.settings import InceptorSettings
from inceptor.execution.packaging import ExecutionArtifact
from inceptor.execution.retry import RetryContext, RetryStrategy, strategy_from_settings
from inceptor.execution.runtimes._types import (
    EphemeralUnit,
    FunctionSpec,
    InvocationResult,
    ProvisioningBackend,
    UnitState,
)

logger = logging.getLogger(__name__)

CREATE_FAILED = "Could not create lambda function"
INVOKE_FAILED = "Could not invoke lambda function"
DELETE_FAILED = "Could not delete lambda function"


class LifecycleOrchestrator:
    """Drives one ephemeral unit through create → invoke → destroy.

    Ordering is strict: create completes before invoke starts, and the
    delete request is issued only after invoke has finished (successfully
    or not). Deletion is fire-and-forget: the result is returned to the
    caller without waiting for it.

    Caller cancellation propagates into create and invoke. If the caller
    is cancelled after the unit exists, deletion is still scheduled.
    """

    def __init__(
        self,
        backend: ProvisioningBackend,
        *,
        settings: InceptorSettings | None = None,
        retry_strategy: RetryStrategy | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings or InceptorSettings()
        self._retry_strategy = retry_strategy or strategy_from_settings(self._settings)
        self._pending: set[asyncio.Task[None]] = set()
        self._states: dict[str, UnitState] = {}

    @property
    def backend(self) -> ProvisioningBackend:
        return self._backend

    @property
    def pending_deletions(self) -> int:
        """Number of deletions still in flight."""
        return len(self._pending)

    def state_of(self, name: str) -> UnitState | None:
        """Lifecycle state of a unit this orchestrator created and has not deleted yet."""
        return self._states.get(name)

    def build_spec(self, artifact: ExecutionArtifact, identifier: str, identity: str) -> FunctionSpec:
        """Combine the prepared inputs with the configured function definition."""
        return FunctionSpec(
            name=identifier,
            artifact=artifact,
            role=identity,
            handler=self._settings.handler,
            runtime=self._settings.runtime,
            description=self._settings.function_description,
            timeout_seconds=self._settings.function_timeout_seconds,
            memory_mb=self._settings.function_memory_mb,
        )

    # ------------------------------------------------------------------
    # Lifecycle stages
    # ------------------------------------------------------------------

    async def create(self, artifact: ExecutionArtifact, identifier: str, identity: str) -> EphemeralUnit:
        """Provision the unit.

        Raises:
            CreationError: Backend rejected the definition, kept failing
                after the configured retries, or missed the deadline.
                No unit exists afterwards, so nothing needs deleting.
        """
        spec = self.build_spec(artifact, identifier, identity)
        self._states[identifier] = UnitState.CREATING

        def _on_retry(attempt: int, error: BaseException, delay: float) -> None:
            logger.warning(
                "Create attempt %d for '%s' failed (%s), retrying in %.2fs",
                attempt, identifier, error, delay,
            )

        retry = RetryContext(self._retry_strategy, on_retry=_on_retry)
        try:
            unit = await asyncio.wait_for(
                retry.run_async(self._backend.create_unit, spec),
                timeout=self._settings.create_timeout_seconds,
            )
        except TimeoutError as exc:
            self._states.pop(identifier, None)
            raise CreationError(
                f"{CREATE_FAILED}: timed out after {self._settings.create_timeout_seconds}s",
                cause=exc,
            ).with_context(function_name=identifier, stage="create", backend=self._backend.backend_name) from exc
        except BackendError as exc:
            self._states.pop(identifier, None)
            logger.error(
                "Create failed for '%s' after %d attempt(s) in %.2fs: %s",
                identifier, retry.attempt, retry.elapsed_seconds, exc,
            )
            raise CreationError(
                CREATE_FAILED,
                retryable=exc.retryable,
                cause=exc,
            ).with_context(
                function_name=identifier,
                stage="create",
                backend=self._backend.backend_name,
                provider_code=exc.provider_code,
            ) from exc
        except asyncio.CancelledError:
            self._states.pop(identifier, None)
            raise

        return unit

    async def invoke(self, unit: EphemeralUnit) -> InvocationResult:
        """Invoke the unit once, synchronously, with no payload.

        Never retried: a second attempt could run the snippet twice.

        Raises:
            InvocationError: The backend call failed or missed the deadline.
        """
        self._states[unit.name] = UnitState.INVOKING
        try:
            result = await asyncio.wait_for(
                self._backend.invoke_unit(unit.name),
                timeout=self._settings.invoke_timeout_seconds,
            )
        except TimeoutError as exc:
            self._states[unit.name] = UnitState.FAILED
            raise InvocationError(
                f"{INVOKE_FAILED}: timed out after {self._settings.invoke_timeout_seconds}s",
                cause=exc,
            ).with_context(function_name=unit.name, stage="invoke", backend=self._backend.backend_name) from exc
        except BackendError as exc:
            self._states[unit.name] = UnitState.FAILED
            logger.error("Invoke failed for '%s': %s", unit.name, exc)
            raise InvocationError(
                INVOKE_FAILED,
                cause=exc,
            ).with_context(
                function_name=unit.name,
                stage="invoke",
                backend=self._backend.backend_name,
                provider_code=exc.provider_code,
            ) from exc
        except asyncio.CancelledError:
            self._states[unit.name] = UnitState.FAILED
            raise

        self._states[unit.name] = UnitState.COMPLETED
        if result.function_error:
            logger.info("Function '%s' raised (%s), passing payload through", unit.name, result.function_error)
        return result

    def destroy(self, unit: EphemeralUnit) -> asyncio.Task[None]:
        """Request deletion of the unit without waiting for it.

        The deletion runs as a detached task held in the orchestrator's
        pending set until it finishes. Failures are logged as
        ``DeletionError`` and never raised.
        """
        task = asyncio.get_running_loop().create_task(
            self._delete(unit), name=f"inceptor-delete-{unit.name}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _delete(self, unit: EphemeralUnit) -> None:
        try:
            await self._backend.delete_unit(unit.name)
        except Exception as exc:
            error = DeletionError(DELETE_FAILED, cause=exc).with_context(
                function_name=unit.name, stage="delete", backend=self._backend.backend_name,
            )
            logger.warning("Deletion of '%s' failed, function left behind: %s", unit.name, error.to_dict())
        finally:
            self._states.pop(unit.name, None)

    async def run(self, artifact: ExecutionArtifact, identifier: str, identity: str) -> InvocationResult:
        """Create, invoke and schedule deletion of one unit.

        Deletion is requested exactly once if and only if create succeeded,
        whatever the outcome of invoke (including cancellation).
        """
        unit = await self.create(artifact, identifier, identity)
        try:
            return await self.invoke(unit)
        finally:
            self.destroy(unit)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for outstanding deletions.

        Used on shutdown and in tests. Deletions still running after
        ``timeout`` are left alone.
        """
        if not self._pending:
            return
        logger.info("Waiting for %d pending deletion(s)", len(self._pending))
        _, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        if pending:
            logger.warning("%d deletion(s) still pending after %.1fs", len(pending), timeout or 0.0)
