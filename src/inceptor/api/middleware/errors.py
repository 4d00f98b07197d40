"""
Error handling — maps unexpected exceptions to RFC 7807 responses.

Expected failures (bad input, provisioning errors) are rendered by the
transport as plain-text bodies; only exceptions that escape it reach the
handlers here.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from inceptor.api.schemas import ProblemDetail
from inceptor.core.errors import InceptorError
from inceptor.core.logging import get_logger

logger = get_logger(__name__)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(title=title, status=status, detail=detail, instance=instance)
    return JSONResponse(status_code=status, content=body.model_dump())


async def inceptor_exception_handler(request: Request, exc: InceptorError) -> JSONResponse:
    """Render an ``InceptorError`` that escaped the transport."""
    logger.error("api.inceptor_error", path=request.url.path, **exc.to_dict())
    return problem_response(
        status=exc.status_code,
        title=exc.category.value,
        detail=exc.message,
        instance=str(request.url),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — returns 500 with ProblemDetail."""
    logger.exception("api.unhandled_error", path=request.url.path)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
