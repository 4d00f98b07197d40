"""Health endpoints at root level for container healthchecks."""

from __future__ import annotations

from fastapi import APIRouter

from inceptor import __version__
from inceptor.api.deps import Pipeline
from inceptor.api.schemas import HealthResponse, LivenessResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(pipeline: Pipeline) -> HealthResponse:
    """Service status and outstanding deletions."""
    return HealthResponse(
        version=__version__,
        backend=pipeline.backend.backend_name,
        pending_deletions=pipeline.orchestrator.pending_deletions,
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe — always 200 if the process is running."""
    return LivenessResponse()
