"""
FastAPI dependency injection — shared singletons.

Usage in routers::

    from inceptor.api.deps import Pipeline, Settings

    @router.get("/")
    async def run(pipeline: Pipeline, settings: Settings):
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from inceptor.core.settings import InceptorSettings, get_settings
from inceptor.execution.pipeline import ExecutionPipeline


def get_pipeline(request: Request) -> ExecutionPipeline:
    """The pipeline built by ``create_app()`` for this application."""
    return request.app.state.pipeline


Settings = Annotated[InceptorSettings, Depends(get_settings)]
Pipeline = Annotated[ExecutionPipeline, Depends(get_pipeline)]
