"""inceptor core -- errors, settings and logging shared by every layer.

Architecture::

    errors.py      Structured error hierarchy (InceptorError and the stage errors)
    settings.py    InceptorSettings (pydantic-settings, INCEPTOR_ prefix)
    logging.py     structlog configuration + get_logger
"""

from inceptor.core.errors import (
    BackendError,
    ClientInputError,
    CreationError,
    DeletionError,
    ErrorCategory,
    ErrorContext,
    IdentityResolutionError,
    InceptorError,
    InvocationError,
    PackagingError,
    is_retryable,
)
from inceptor.core.settings import InceptorSettings, get_settings

__all__ = [
    "BackendError",
    "ClientInputError",
    "CreationError",
    "DeletionError",
    "ErrorCategory",
    "ErrorContext",
    "IdentityResolutionError",
    "InceptorError",
    "InvocationError",
    "PackagingError",
    "InceptorSettings",
    "get_settings",
    "is_retryable",
]
