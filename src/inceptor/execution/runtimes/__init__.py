"""Provisioning backends and the lifecycle orchestrator.

This package contains the backend protocol, its types, the AWS Lambda
backend, test doubles, and the ``LifecycleOrchestrator`` that drives one
ephemeral function through create → invoke → destroy.

Architecture:

    .. code-block:: text

        inceptor.execution.runtimes
        ├── __init__.py       ← Public API (this file)
        ├── _types.py         ← ProvisioningBackend protocol + all types
        ├── _base.py          ← BaseProvisioningBackend + StubProvisioningBackend
        ├── engine.py         ← LifecycleOrchestrator
        ├── lambda_backend.py ← LambdaBackend (boto3)
        └── mock_adapters.py  ← FailingBackend, SlowBackend, FlakeyBackend

    .. mermaid::

        graph TB
            TYPES["_types.py<br/>Protocol + Types"]
            BASE["_base.py<br/>BaseProvisioningBackend"]
            ENGINE["engine.py<br/>LifecycleOrchestrator"]
            LAMBDA["lambda_backend.py<br/>LambdaBackend"]
            STUB["StubProvisioningBackend"]
            MOCKS["mock_adapters.py"]

            TYPES --> BASE --> LAMBDA & STUB
            STUB --> MOCKS
            TYPES --> ENGINE

Tags:
    inceptor, execution, runtimes, lambda, backend-protocol
"""

from inceptor.execution.runtimes._base import (
    BaseProvisioningBackend,
    StubProvisioningBackend,
)
from inceptor.execution.runtimes._types import (
    EphemeralUnit,
    FunctionSpec,
    InvocationResult,
    ProvisioningBackend,
    UnitDescription,
    UnitState,
)
from inceptor.execution.runtimes.engine import LifecycleOrchestrator
from inceptor.execution.runtimes.lambda_backend import LambdaBackend, classify_error
from inceptor.execution.runtimes.mock_adapters import (
    FailingBackend,
    FlakeyBackend,
    SlowBackend,
)

__all__ = [
    # Types & Protocol
    "EphemeralUnit",
    "FunctionSpec",
    "InvocationResult",
    "ProvisioningBackend",
    "UnitDescription",
    "UnitState",
    # Base classes
    "BaseProvisioningBackend",
    "StubProvisioningBackend",
    # Orchestration
    "LifecycleOrchestrator",
    # Backends
    "LambdaBackend",
    "classify_error",
    # Mock backends (testing)
    "FailingBackend",
    "FlakeyBackend",
    "SlowBackend",
]
