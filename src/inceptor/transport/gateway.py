"""HTTP request mapping shared by the Lambda handler and the HTTP server.

Routing by method:

    .. code-block:: text

        GET (or any method but POST)
          ├── no sourceCode query parameter → 400 "You didn't supply sourceCode!"
          └── sourceCode                    → run it
                ├── ok      → 200 application/json, raw payload
                └── failure → 500 "Error when building lambda: <message>"

        POST
          ├── base64 flag, bad base64 → 400 "Error parsing base64-encoded parameters: <reason>"
          ├── body not a JSON object  → 400 "Error parsing JSON body!"
          ├── echo mode (default)     → 200, the submitted sourceCode
          └── execute mode            → run it, as for GET

Headers are built per response; nothing is shared between requests.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from inceptor.core.errors import ClientInputError, InceptorError
from inceptor.core.logging import get_logger
from inceptor.core.settings import InceptorSettings
from inceptor.execution.pipeline import ExecutionPipeline
from inceptor.transport.schemas import SourceCodeParams

logger = get_logger(__name__)

SOURCE_CODE_PARAM = "sourceCode"

MISSING_SOURCE = "You didn't supply sourceCode!"
BAD_BASE64 = "Error parsing base64-encoded parameters: {reason}"
BAD_JSON = "Error parsing JSON body!"
BUILD_FAILED = "Error when building lambda: {message}"

TEXT_PLAIN = "text/plain"
APPLICATION_JSON = "application/json"


@dataclass(frozen=True)
class ResponseHeaders:
    """Factory for per-response header maps."""

    powered_by: str = "Sadness, mostly"

    @classmethod
    def from_settings(cls, settings: InceptorSettings) -> ResponseHeaders:
        return cls(powered_by=settings.powered_by)

    def build(self, content_type: str = TEXT_PLAIN) -> dict[str, str]:
        """Return a new header map."""
        return {"Content-Type": content_type, "X-Powered-By": self.powered_by}


@dataclass
class GatewayRequest:
    """Inbound request, independent of the surface it arrived on."""

    method: str = "GET"
    query_params: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None
    is_base64_encoded: bool = False


@dataclass
class GatewayResponse:
    """Outbound response."""

    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Render in the API Gateway v2 response shape."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
        }


def parse_post_body(request: GatewayRequest) -> SourceCodeParams:
    """Decode (if flagged) and parse a POST body.

    Raises:
        ClientInputError: Body is not valid base64 or not a JSON object
            with an optional string ``sourceCode`` field.
    """
    raw: str | bytes = request.body or ""
    if request.is_base64_encoded:
        try:
            raw = base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ClientInputError(BAD_BASE64.format(reason=exc), cause=exc) from exc
    try:
        return SourceCodeParams.model_validate_json(raw)
    except ValidationError as exc:
        raise ClientInputError(BAD_JSON, cause=exc) from exc


async def run_source(
    source: str,
    pipeline: ExecutionPipeline,
    headers: ResponseHeaders,
) -> GatewayResponse:
    """Execute a snippet and render the outcome."""
    try:
        result = await pipeline.execute(source)
    except InceptorError as exc:
        logger.error("request.build_failed", **exc.to_dict())
        return GatewayResponse(
            status_code=500,
            body=BUILD_FAILED.format(message=exc.message),
            headers=headers.build(TEXT_PLAIN),
        )
    return GatewayResponse(
        status_code=200,
        body=result.text,
        headers=headers.build(APPLICATION_JSON),
    )


async def handle_request(
    request: GatewayRequest,
    pipeline: ExecutionPipeline,
    settings: InceptorSettings | None = None,
) -> GatewayResponse:
    """Map one inbound request to a response."""
    settings = settings or pipeline.settings
    headers = ResponseHeaders.from_settings(settings)
    method = request.method.upper()
    logger.info("request.received", method=method, base64=request.is_base64_encoded)

    if method == "POST":
        try:
            params = parse_post_body(request)
        except ClientInputError as exc:
            logger.info("request.rejected", reason=exc.message)
            return GatewayResponse(status_code=exc.status_code, body=exc.message, headers=headers.build())
        if settings.post_mode == "echo":
            return GatewayResponse(status_code=200, body=params.source_code, headers=headers.build())
        return await run_source(params.source_code, pipeline, headers)

    if SOURCE_CODE_PARAM not in request.query_params:
        logger.info("request.rejected", reason=MISSING_SOURCE)
        return GatewayResponse(status_code=400, body=MISSING_SOURCE, headers=headers.build())
    return await run_source(request.query_params[SOURCE_CODE_PARAM], pipeline, headers)
