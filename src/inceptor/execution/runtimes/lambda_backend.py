"""AWS Lambda provisioning backend.

Maps the four backend operations onto the Lambda API through boto3:

    create_unit   → CreateFunction (+ function_active_v2 waiter)
    invoke_unit   → Invoke (RequestResponse, no payload)
    delete_unit   → DeleteFunction
    describe_unit → GetFunction

boto3 is synchronous, so every call runs in a worker thread via
``asyncio.to_thread`` and the event loop stays free for the other
preparation tasks and for detached deletions.

botocore's own retries are disabled (one attempt per call); retry policy
belongs to the orchestrator, which knows which calls are safe to repeat.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
    WaiterError,
)

from inceptor.core.errors import BackendError, ErrorCategory
from inceptor.core.settings import InceptorSettings
from inceptor.execution.runtimes._base import BaseProvisioningBackend
from inceptor.execution.runtimes._types import (
    EphemeralUnit,
    FunctionSpec,
    InvocationResult,
    UnitDescription,
)

logger = logging.getLogger(__name__)

# provider code → (category, retryable)
_CLIENT_ERROR_CATEGORIES: dict[str, tuple[ErrorCategory, bool]] = {
    "ResourceConflictException": (ErrorCategory.CONFLICT, False),
    "ResourceNotFoundException": (ErrorCategory.NOT_FOUND, False),
    "InvalidParameterValueException": (ErrorCategory.VALIDATION, False),
    "CodeStorageExceededException": (ErrorCategory.VALIDATION, False),
    "RequestTooLargeException": (ErrorCategory.VALIDATION, False),
    "AccessDeniedException": (ErrorCategory.AUTH, False),
    "UnrecognizedClientException": (ErrorCategory.AUTH, False),
    "ExpiredTokenException": (ErrorCategory.AUTH, True),
    "TooManyRequestsException": (ErrorCategory.THROTTLED, True),
    "ThrottlingException": (ErrorCategory.THROTTLED, True),
    "ServiceException": (ErrorCategory.UNKNOWN, True),
    "ResourceNotReadyException": (ErrorCategory.UNKNOWN, True),
}


def classify_error(exc: Exception, *, function_name: str | None = None) -> BackendError:
    """Convert a botocore exception into a classified ``BackendError``."""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        code = error.get("Code", "Unknown")
        message = error.get("Message") or str(exc)
        category, retryable = _CLIENT_ERROR_CATEGORIES.get(code, (ErrorCategory.UNKNOWN, False))
        backend_error = BackendError(
            message,
            category=category,
            retryable=retryable,
            provider_code=code,
            cause=exc,
        )
    elif isinstance(exc, (ReadTimeoutError, ConnectTimeoutError)):
        backend_error = BackendError(
            f"Lambda API timed out: {exc}",
            category=ErrorCategory.TIMEOUT,
            retryable=False,
            cause=exc,
        )
    elif isinstance(exc, EndpointConnectionError):
        backend_error = BackendError(
            f"Could not reach the Lambda API: {exc}",
            category=ErrorCategory.NETWORK,
            retryable=True,
            cause=exc,
        )
    else:
        backend_error = BackendError(
            f"Lambda API call failed: {exc}",
            category=ErrorCategory.NETWORK if isinstance(exc, BotoCoreError) else ErrorCategory.UNKNOWN,
            retryable=True,
            cause=exc,
        )
    return backend_error.with_context(function_name=function_name, backend="lambda")


class LambdaBackend(BaseProvisioningBackend):
    """Provision ephemeral functions on AWS Lambda.

    Parameters
    ----------
    client
        A boto3 ``lambda`` client. Created lazily from the settings when
        omitted.
    settings
        Region, endpoint and timeouts for the lazily created client.
    wait_until_active
        Wait for a new function to leave the ``Pending`` state before
        returning from ``create_unit``. New functions cannot be invoked
        until they are ``Active``.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        settings: InceptorSettings | None = None,
        wait_until_active: bool | None = None,
        waiter_delay: int = 1,
        waiter_max_attempts: int = 60,
    ) -> None:
        self._settings = settings or InceptorSettings()
        self._client = client
        self._wait_until_active = (
            self._settings.wait_until_active if wait_until_active is None else wait_until_active
        )
        self._waiter_config = {"Delay": waiter_delay, "MaxAttempts": waiter_max_attempts}
        self._cleanups: set[asyncio.Task[None]] = set()

    @property
    def backend_name(self) -> str:
        return "lambda"

    @property
    def pending_cleanups(self) -> int:
        """Deletions of half-created functions still in flight."""
        return len(self._cleanups)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self) -> Any:
        # Invoke blocks for the whole function run
        read_timeout = max(60, self._settings.function_timeout_seconds + 15)
        client_kwargs: dict[str, Any] = {
            "service_name": "lambda",
            "config": Config(
                read_timeout=read_timeout,
                retries={"total_max_attempts": 1},
            ),
        }
        if self._settings.aws_region:
            client_kwargs["region_name"] = self._settings.aws_region
        if self._settings.aws_endpoint_url:
            client_kwargs["endpoint_url"] = self._settings.aws_endpoint_url

        client = boto3.client(**client_kwargs)
        logger.info(
            "Lambda client initialized (region=%s, endpoint=%s)",
            client.meta.region_name, self._settings.aws_endpoint_url,
        )
        return client

    async def _run(self, function_name: str, method: str, **params: Any) -> dict[str, Any]:
        call = getattr(self.client, method)
        try:
            return await asyncio.to_thread(call, **params)
        except (ClientError, BotoCoreError) as exc:
            raise classify_error(exc, function_name=function_name) from exc

    # --- Backend operations ---

    async def _do_create(self, spec: FunctionSpec) -> EphemeralUnit:
        params: dict[str, Any] = {
            "FunctionName": spec.name,
            "Runtime": spec.runtime,
            "Role": spec.role,
            "Handler": spec.handler,
            "Code": {"ZipFile": spec.artifact.content},
            "Description": spec.description,
            "Timeout": spec.timeout_seconds,
            "MemorySize": spec.memory_mb,
            "Publish": False,
        }
        if spec.tags:
            params["Tags"] = dict(spec.tags)

        # The call keeps running in its thread if we are cancelled meanwhile
        call = asyncio.ensure_future(self._run(spec.name, "create_function", **params))
        try:
            response = await asyncio.shield(call)
        except asyncio.CancelledError:
            await self._discard_if_created(call, spec.name)
            raise
        unit = EphemeralUnit(name=spec.name, role=spec.role, arn=response.get("FunctionArn"))

        if self._wait_until_active and response.get("State") != "Active":
            try:
                await self._wait_active(unit)
            except asyncio.CancelledError:
                logger.warning("Cancelled while '%s' was pending, deleting it", unit.name)
                await asyncio.shield(self._spawn_cleanup(unit.name))
                raise
        return unit

    # A unit is only handed to the orchestrator once create_unit returns, so
    # any function that exists when create_unit fails or is cancelled is
    # deleted here.

    async def _discard_if_created(self, call: asyncio.Future[dict[str, Any]], name: str) -> None:
        await asyncio.wait({call})
        if call.cancelled() or call.exception() is not None:
            return
        logger.warning("Create of '%s' was cancelled after the function was created, deleting it", name)
        await asyncio.shield(self._spawn_cleanup(name))

    def _spawn_cleanup(self, name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(
            self._delete_quietly(name), name=f"inceptor-cleanup-{name}",
        )
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)
        return task

    async def _delete_quietly(self, name: str) -> None:
        try:
            await self._run(name, "delete_function", FunctionName=name)
        except Exception as exc:
            logger.warning("Cleanup of function '%s' failed, function left behind: %s", name, exc)

    async def _wait_active(self, unit: EphemeralUnit) -> None:
        waiter = self.client.get_waiter("function_active_v2")
        try:
            await asyncio.to_thread(
                waiter.wait, FunctionName=unit.name, WaiterConfig=self._waiter_config,
            )
        except WaiterError as exc:
            logger.warning("Function '%s' did not become active: %s", unit.name, exc)
            await self._delete_quietly(unit.name)
            raise BackendError(
                f"Function {unit.name} did not become active: {exc}",
                category=ErrorCategory.TIMEOUT,
                retryable=False,
                cause=exc,
            ).with_context(function_name=unit.name, backend="lambda") from exc

    async def _do_invoke(self, name: str) -> InvocationResult:
        started = time.perf_counter()
        response = await self._run(
            name,
            "invoke",
            FunctionName=name,
            InvocationType="RequestResponse",
        )
        body = response.get("Payload")
        payload = await asyncio.to_thread(body.read) if body is not None else b""
        return InvocationResult(
            payload=payload,
            status_code=response.get("StatusCode", 200),
            function_error=response.get("FunctionError"),
            log_result=response.get("LogResult"),
            executed_version=response.get("ExecutedVersion"),
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    async def _do_delete(self, name: str) -> None:
        await self._run(name, "delete_function", FunctionName=name)

    async def _do_describe(self, name: str) -> UnitDescription:
        response = await self._run(name, "get_function", FunctionName=name)
        configuration = response.get("Configuration", {})
        role = configuration.get("Role")
        if not role:
            raise BackendError(
                f"Function {name} has no execution role",
                category=ErrorCategory.NOT_FOUND,
                retryable=False,
            ).with_context(function_name=name, backend="lambda")
        return UnitDescription(
            name=configuration.get("FunctionName", name),
            role=role,
            arn=configuration.get("FunctionArn"),
            runtime=configuration.get("Runtime"),
            state=configuration.get("State"),
        )
