"""ASGI middleware for the inceptor HTTP server."""

from inceptor.api.middleware.errors import unhandled_exception_handler
from inceptor.api.middleware.request_id import RequestIDMiddleware
from inceptor.api.middleware.timing import TimingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "TimingMiddleware",
    "unhandled_exception_handler",
]
