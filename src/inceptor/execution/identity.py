"""Execution identity resolution.

A new function runs under the same IAM role as the function hosting
inceptor. The host finds its own name in the environment the Lambda
runtime provides (``AWS_LAMBDA_FUNCTION_NAME``) and asks the backend for
its configuration.

The role is looked up on every request and never cached, so a role change
on the host takes effect immediately. A static ``execution_role`` setting
skips the lookup entirely (useful outside Lambda, e.g. for the HTTP
server or the CLI).
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from inceptor.core.errors import BackendError, IdentityResolutionError
from inceptor.core.logging import get_logger
from inceptor.core.settings import InceptorSettings
from inceptor.execution.retry import RetryContext, RetryStrategy, strategy_from_settings
from inceptor.execution.runtimes._types import ProvisioningBackend

logger = get_logger(__name__)


class IdentityResolver:
    """Resolve the execution role for new functions.

    Example::

        resolver = IdentityResolver(backend, settings=settings)
        role = await resolver.resolve()
        # 'arn:aws:iam::123456789012:role/inceptor'
    """

    def __init__(
        self,
        backend: ProvisioningBackend,
        *,
        settings: InceptorSettings | None = None,
        retry_strategy: RetryStrategy | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings or InceptorSettings()
        self._retry_strategy = retry_strategy or strategy_from_settings(self._settings)
        self._environ = environ if environ is not None else os.environ

    def host_name(self) -> str:
        """Name of the function hosting this process.

        Raises:
            IdentityResolutionError: If the environment does not name one.
        """
        name = self._environ.get(self._settings.self_name_env)
        if not name:
            raise IdentityResolutionError(
                f"Could not determine own function name: {self._settings.self_name_env} is not set"
            )
        return name

    async def resolve(self) -> str:
        """Return the role ARN new functions should run under.

        Raises:
            IdentityResolutionError: The host name is unknown or the backend
                lookup failed.
        """
        if self._settings.execution_role:
            logger.debug("identity.static", role=self._settings.execution_role)
            return self._settings.execution_role

        name = self.host_name()
        retry = RetryContext(self._retry_strategy)
        try:
            description = await retry.run_async(self._backend.describe_unit, name)
        except BackendError as exc:
            logger.error(
                "identity.lookup_failed",
                host=name,
                error=str(exc),
                attempts=retry.attempt,
                elapsed_seconds=round(retry.elapsed_seconds, 3),
            )
            raise IdentityResolutionError(
                f"Could not look up own function {name}",
                cause=exc,
            ).with_context(stage="identity", backend=self._backend.backend_name) from exc

        logger.debug("identity.resolved", host=name, role=description.role)
        return description.role
