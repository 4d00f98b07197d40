"""
Structured error types for inceptor.

Every failure that can happen between receiving a snippet and returning
its output is one of the typed errors below. Each carries a category, a
retryable flag, structured context and the chained underlying exception,
so the transport can render a single message while logs keep the detail.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       InceptorError                              │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ClientInputError      PackagingError     IdentityResolutionError│
        │  (INPUT, 400)          (PACKAGING)        (IDENTITY)             │
        │                                                                  │
        │  CreationError         InvocationError    DeletionError          │
        │  (CREATE)              (INVOKE)           (DELETE, swallowed)    │
        │                                                                  │
        │  BackendError                                                    │
        │  (raised by provisioning backends, wrapped by the stages above)  │
        └─────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Let a backend exception escape a lifecycle stage unwrapped
    ✅ DO: Wrap it in the stage error and pass it as cause=

    ❌ DON'T: Surface DeletionError to callers
    ✅ DO: Log it and move on, cleanup is best effort

Usage:
    from inceptor.core.errors import CreationError

    try:
        unit = await backend.create_unit(spec)
    except BackendError as exc:
        raise CreationError("Could not create lambda function", cause=exc) from exc

Tags:
    error-handling, exception-hierarchy, retry-logic, inceptor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and retry decisions.

    Categories are grouped by where in the request they originate:
    - **Caller:** INPUT
    - **Preparation:** PACKAGING, IDENTITY
    - **Lifecycle:** CREATE, INVOKE, DELETE
    - **Backend detail:** AUTH, CONFLICT, NOT_FOUND, VALIDATION, THROTTLED,
      NETWORK, TIMEOUT
    - **Internal:** INTERNAL, UNKNOWN
    """

    INPUT = "INPUT"                   # Missing or malformed payload
    PACKAGING = "PACKAGING"           # Artifact construction failed
    IDENTITY = "IDENTITY"             # Execution role could not be resolved
    CREATE = "CREATE"                 # Backend rejected the unit definition
    INVOKE = "INVOKE"                 # Invocation failed or timed out
    DELETE = "DELETE"                 # Cleanup failed (never surfaced)

    AUTH = "AUTH"                     # Credentials or permissions
    CONFLICT = "CONFLICT"             # Name already in use
    NOT_FOUND = "NOT_FOUND"           # Unit or resource missing
    VALIDATION = "VALIDATION"         # Backend rejected a parameter
    THROTTLED = "THROTTLED"           # Rate limited by the backend
    NETWORK = "NETWORK"               # Connection failure
    TIMEOUT = "TIMEOUT"               # Deadline exceeded

    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are serialized by ``to_dict()``. Anything without
    a dedicated field goes into ``metadata``.

    Example:
        >>> ctx = ErrorContext(function_name="qwertyuiopasdfgh", stage="invoke")
        >>> ctx.to_dict()
        {'function_name': 'qwertyuiopasdfgh', 'stage': 'invoke'}
    """

    function_name: str | None = None
    stage: str | None = None
    backend: str | None = None
    request_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["function_name", "stage", "backend", "request_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class InceptorError(Exception):
    """
    Base exception for all inceptor errors.

    Subclasses set ``default_category``, ``default_retryable`` and
    ``status_code`` so call sites only pass a message and a cause.

    Examples:
        >>> error = InceptorError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False

        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = InceptorError("Network error", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    # HTTP status the transport renders for this error
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> InceptorError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CreationError("Could not create lambda function").with_context(
                function_name=name, backend="lambda"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CALLER ERRORS
# =============================================================================


class ClientInputError(InceptorError):
    """Missing or malformed request payload. Raised before any provisioning."""

    default_category = ErrorCategory.INPUT
    status_code = 400


# =============================================================================
# PREPARATION ERRORS
# =============================================================================


class PackagingError(InceptorError):
    """The snippet could not be turned into a deployable archive."""

    default_category = ErrorCategory.PACKAGING


class IdentityResolutionError(InceptorError):
    """The host's own execution role could not be determined."""

    default_category = ErrorCategory.IDENTITY


# =============================================================================
# LIFECYCLE ERRORS
# =============================================================================


class CreationError(InceptorError):
    """The backend rejected the unit definition. Nothing needs cleaning up."""

    default_category = ErrorCategory.CREATE


class InvocationError(InceptorError):
    """The invocation failed, timed out or could not reach the backend.

    The unit was created, so deletion is still issued.
    """

    default_category = ErrorCategory.INVOKE


class DeletionError(InceptorError):
    """Cleanup of a unit failed. Logged, never raised to a caller."""

    default_category = ErrorCategory.DELETE


# =============================================================================
# BACKEND ERRORS
# =============================================================================


class BackendError(InceptorError):
    """
    Error reported by a provisioning backend.

    Backends classify their native failures into a category and a
    retryable flag; the orchestrator wraps them into the stage errors.
    ``provider_code`` keeps the backend's own error code
    (e.g. ``ResourceConflictException``).

    Example:
        >>> err = BackendError(
        ...     "Function already exist: abcdefghijklmnop",
        ...     category=ErrorCategory.CONFLICT,
        ...     provider_code="ResourceConflictException",
        ... )
        >>> str(err)
        '[CONFLICT] Function already exist: abcdefghijklmnop (provider: ResourceConflictException)'
    """

    default_category = ErrorCategory.UNKNOWN
    default_retryable = True

    def __init__(
        self,
        message: str,
        *,
        provider_code: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.provider_code = provider_code

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.provider_code:
            parts.append(f"(provider: {self.provider_code})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.provider_code:
            result["provider_code"] = self.provider_code
        return result


def is_retryable(error: BaseException) -> bool:
    """Whether an error may be retried.

    Errors outside the inceptor hierarchy are treated as not retryable.
    """
    if isinstance(error, InceptorError):
        return error.retryable
    return False
