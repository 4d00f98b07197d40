"""AWS Lambda entry point for API Gateway v2 / function URL events.

Deploy with handler ``inceptor.lambda_handler.handler``. The function's
role needs ``lambda:GetFunction`` on itself and ``lambda:CreateFunction``,
``lambda:InvokeFunction``, ``lambda:DeleteFunction`` and
``iam:PassRole`` for the functions it creates.

One event loop is kept per execution environment. Deletions scheduled by
one request keep progressing whenever the loop runs again, i.e. during the
next warm invocation.
"""

from __future__ import annotations

import asyncio
from typing import Any

from inceptor.core.logging import configure_logging, get_logger
from inceptor.core.settings import InceptorSettings, get_settings
from inceptor.execution.pipeline import ExecutionPipeline
from inceptor.execution.runtimes.lambda_backend import LambdaBackend
from inceptor.transport import GatewayRequest, handle_request

logger = get_logger(__name__)

_loop: asyncio.AbstractEventLoop | None = None
_pipeline: ExecutionPipeline | None = None


def request_from_event(event: dict[str, Any]) -> GatewayRequest:
    """Map an API Gateway v2 HTTP event onto a ``GatewayRequest``.

    Falls back to the v1 ``httpMethod`` key for REST API events.
    """
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method") or event.get("httpMethod") or "GET"
    return GatewayRequest(
        method=method,
        query_params=event.get("queryStringParameters") or {},
        body=event.get("body"),
        is_base64_encoded=bool(event.get("isBase64Encoded", False)),
    )


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop


def get_pipeline(settings: InceptorSettings | None = None) -> ExecutionPipeline:
    """Build the process-wide pipeline on first use."""
    global _pipeline
    if _pipeline is None:
        settings = settings or get_settings()
        configure_logging(level=settings.log_level, json_format=settings.log_json)
        _pipeline = ExecutionPipeline(LambdaBackend(settings=settings), settings=settings)
    return _pipeline


def set_pipeline(pipeline: ExecutionPipeline | None) -> None:
    """Replace the process-wide pipeline (tests, custom backends)."""
    global _pipeline
    _pipeline = pipeline


async def _handle(event: dict[str, Any], pipeline: ExecutionPipeline) -> dict[str, Any]:
    response = await handle_request(request_from_event(event), pipeline)
    grace = pipeline.settings.deletion_grace_seconds
    if grace > 0 and pipeline.orchestrator.pending_deletions:
        await pipeline.drain(timeout=grace)
    return response.to_dict()


def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda handler."""
    pipeline = get_pipeline()
    request_id = getattr(context, "aws_request_id", None)
    logger.info("lambda.event", request_id=request_id, path=event.get("rawPath"))
    return _get_loop().run_until_complete(_handle(event, pipeline))
