"""Execution layer: naming, packaging, identity and the function lifecycle.

Architecture::

    naming.py      generate_identifier()
    packaging/     ArtifactPackager, ExecutionArtifact
    identity.py    IdentityResolver
    retry.py       Retry strategies for idempotent backend calls
    runtimes/      Backend protocol, LambdaBackend, LifecycleOrchestrator
    pipeline.py    ExecutionPipeline (joins the above)
"""

from inceptor.execution.identity import IdentityResolver
from inceptor.execution.naming import generate_identifier
from inceptor.execution.packaging import ArtifactPackager, ExecutionArtifact
from inceptor.execution.pipeline import ExecutionPipeline, PreparedExecution
from inceptor.execution.retry import ExponentialBackoff, NoRetry, RetryStrategy
from inceptor.execution.runtimes import LifecycleOrchestrator

__all__ = [
    "ArtifactPackager",
    "ExecutionArtifact",
    "ExecutionPipeline",
    "ExponentialBackoff",
    "IdentityResolver",
    "LifecycleOrchestrator",
    "NoRetry",
    "PreparedExecution",
    "RetryStrategy",
    "generate_identifier",
]
