"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance.

The pipeline is built once per application and kept on ``app.state``;
on shutdown the lifespan waits briefly for deletions still in flight.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from inceptor import __version__
from inceptor.api.deps import get_settings
from inceptor.api.middleware.errors import inceptor_exception_handler, unhandled_exception_handler
from inceptor.api.middleware.request_id import RequestIDMiddleware
from inceptor.api.middleware.timing import TimingMiddleware
from inceptor.core.errors import InceptorError
from inceptor.core.logging import get_logger
from inceptor.core.settings import InceptorSettings
from inceptor.execution.pipeline import ExecutionPipeline
from inceptor.execution.runtimes._types import ProvisioningBackend
from inceptor.execution.runtimes.lambda_backend import LambdaBackend

# Upper bound on how long shutdown waits for pending deletions
SHUTDOWN_DRAIN_SECONDS = 30.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — startup / shutdown hooks."""
    log = get_logger("inceptor.api")
    pipeline: ExecutionPipeline = app.state.pipeline
    log.info("inceptor API starting", version=app.version, backend=pipeline.backend.backend_name)

    yield

    pending = pipeline.orchestrator.pending_deletions
    if pending:
        log.info("draining pending deletions", pending=pending)
        await pipeline.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    log.info("inceptor API shutting down")


def create_app(
    *,
    settings: InceptorSettings | None = None,
    backend: ProvisioningBackend | None = None,
    pipeline: ExecutionPipeline | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : InceptorSettings | None
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    backend : ProvisioningBackend | None
        Backend for a new pipeline. Defaults to ``LambdaBackend``.
    pipeline : ExecutionPipeline | None
        Use this pipeline as-is; ``backend`` is then ignored.
    """
    settings = settings or (pipeline.settings if pipeline else get_settings())

    if pipeline is None:
        pipeline = ExecutionPipeline(backend or LambdaBackend(settings=settings), settings=settings)

    app = FastAPI(
        title="inceptor",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.pipeline = pipeline

    # Override DI so endpoints use the provided settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(InceptorError, inceptor_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from inceptor.api.routers import health, invoke

    app.include_router(health.router)
    app.include_router(invoke.router)

    return app
