"""
Invoke router — the request surface of the Lambda handler over plain HTTP.

Endpoints:
    GET  /?sourceCode=...   Run a snippet
    POST /                  JSON body ``{"sourceCode": "..."}``; echoed or run
                            depending on ``post_mode``

A ``Content-Transfer-Encoding: base64`` request header marks a POST body as
base64-encoded, mirroring API Gateway's ``isBase64Encoded`` flag.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response

from inceptor.api.deps import Pipeline, Settings
from inceptor.transport import GatewayRequest, GatewayResponse, handle_request

router = APIRouter(tags=["invoke"])

BASE64_ENCODING = "base64"


def _render(response: GatewayResponse) -> Response:
    return Response(
        content=response.body,
        status_code=response.status_code,
        headers=response.headers,
    )


@router.get("/", response_class=Response)
async def run_from_query(request: Request, pipeline: Pipeline, settings: Settings) -> Response:
    """Run the snippet given in the ``sourceCode`` query parameter."""
    gateway_request = GatewayRequest(method="GET", query_params=dict(request.query_params))
    return _render(await handle_request(gateway_request, pipeline, settings))


@router.post("/", response_class=Response)
async def run_from_body(request: Request, pipeline: Pipeline, settings: Settings) -> Response:
    """Parse a JSON body, then echo or run its ``sourceCode``."""
    raw = await request.body()
    encoding = request.headers.get("Content-Transfer-Encoding", "")
    gateway_request = GatewayRequest(
        method="POST",
        query_params=dict(request.query_params),
        body=raw.decode("utf-8", errors="replace"),
        is_base64_encoded=encoding.strip().lower() == BASE64_ENCODING,
    )
    return _render(await handle_request(gateway_request, pipeline, settings))
