"""Request-ID middleware — injects ``X-Request-ID`` on every request.

The ID is also bound to the structlog context so every log line emitted
while serving the request carries it.
"""

from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from inceptor.core.logging import bind_context, unbind_context


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a unique request ID to every request/response cycle."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        bind_context(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            unbind_context("request_id")
        response.headers["X-Request-ID"] = request_id
        return response
