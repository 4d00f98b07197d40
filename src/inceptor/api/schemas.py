"""Response models for the HTTP server."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

# Set when the server first imports this module
_START_TIME = time.monotonic()


class ProblemDetail(BaseModel):
    """RFC 7807 problem body."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str = ""
    instance: str = ""


class HealthResponse(BaseModel):
    """Body of ``GET /health``."""

    status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
    service: str = "inceptor"
    version: str = ""
    backend: str = ""
    pending_deletions: int = 0
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


class LivenessResponse(BaseModel):
    """Response for liveness probes — always ``{"status": "alive"}``."""

    status: str = "alive"
