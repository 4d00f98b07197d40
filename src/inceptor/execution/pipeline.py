"""Execution pipeline — from a snippet to its output.

Flow:

    .. code-block:: text

        source
          │
          ├──► generate_identifier()         ┐
          ├──► ArtifactPackager.package()    ├─ concurrent, join-all
          └──► IdentityResolver.resolve()    ┘
                        │
                        ▼
        LifecycleOrchestrator.run(artifact, name, role)
                        │
                        ▼
                InvocationResult

The three preparation steps are independent. Packaging is CPU work and
runs in a worker thread; identity resolution waits on the backend. If any
of them fails the others are cancelled and that first error is raised,
before anything has been provisioned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from inceptor.core.logging import bind_context, get_logger, unbind_context
from inceptor.core.settings import InceptorSettings
from inceptor.execution.identity import IdentityResolver
from inceptor.execution.naming import generate_identifier
from inceptor.execution.packaging import ArtifactPackager, ExecutionArtifact
from inceptor.execution.retry import strategy_from_settings
from inceptor.execution.runtimes._types import InvocationResult, ProvisioningBackend
from inceptor.execution.runtimes.engine import LifecycleOrchestrator

logger = get_logger(__name__)


@dataclass(frozen=True)
class PreparedExecution:
    """Everything needed to create the function."""

    name: str
    artifact: ExecutionArtifact
    role: str


class ExecutionPipeline:
    """Run snippets on single-use functions.

    Example::

        pipeline = ExecutionPipeline(LambdaBackend(settings=settings), settings=settings)
        result = await pipeline.execute("return 1+1")
        result.payload   # b'2'
        await pipeline.drain()
    """

    def __init__(
        self,
        backend: ProvisioningBackend,
        *,
        settings: InceptorSettings | None = None,
        orchestrator: LifecycleOrchestrator | None = None,
        resolver: IdentityResolver | None = None,
        packager: ArtifactPackager | None = None,
        name_factory: Callable[[], str] | None = None,
    ) -> None:
        self.settings = settings or InceptorSettings()
        self.backend = backend
        strategy = strategy_from_settings(self.settings)
        self.orchestrator = orchestrator or LifecycleOrchestrator(
            backend, settings=self.settings, retry_strategy=strategy,
        )
        self.resolver = resolver or IdentityResolver(
            backend, settings=self.settings, retry_strategy=strategy,
        )
        self.packager = packager or ArtifactPackager()
        self._name_factory = name_factory or (lambda: generate_identifier(self.settings.name_length))

    async def _generate_name(self) -> str:
        return self._name_factory()

    async def prepare(self, source: str) -> PreparedExecution:
        """Run naming, packaging and identity resolution concurrently.

        Raises:
            PackagingError: The archive could not be built.
            IdentityResolutionError: The execution role could not be found.
        """
        tasks = [
            asyncio.ensure_future(self._generate_name()),
            asyncio.ensure_future(asyncio.to_thread(self.packager.package, source)),
            asyncio.ensure_future(self.resolver.resolve()),
        ]
        try:
            name, artifact, role = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        return PreparedExecution(name=name, artifact=artifact, role=role)

    async def execute(self, source: str) -> InvocationResult:
        """Prepare, create, invoke and schedule deletion for one snippet.

        Returns the invocation result without waiting for the deletion.

        Raises:
            InceptorError: The first failing stage's error.
        """
        prepared = await self.prepare(source)
        bind_context(function_name=prepared.name)
        try:
            logger.info(
                "pipeline.prepared",
                role=prepared.role,
                artifact_bytes=prepared.artifact.size_bytes,
            )
            result = await self.orchestrator.run(prepared.artifact, prepared.name, prepared.role)
            logger.info("pipeline.completed", **result.to_dict())
            return result
        finally:
            unbind_context("function_name")

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for the deletions this pipeline has scheduled."""
        await self.orchestrator.drain(timeout)
