"""Process settings for inceptor.

All values can be overridden via environment variables prefixed with
``INCEPTOR_`` or a ``.env`` file.

Order of precedence (highest → lowest):
    1. Constructor arguments (tests, CLI flags)
    2. Environment variables (``INCEPTOR_RUNTIME``, etc.)
    3. ``.env`` file
    4. Defaults below

Examples:
    >>> from inceptor.core.settings import InceptorSettings
    >>> settings = InceptorSettings(post_mode="execute", max_retries=2)
    >>> settings.name_length
    16

Tags:
    settings, configuration, pydantic, environment, inceptor
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InceptorSettings(BaseSettings):
    """Settings shared by the Lambda handler, the HTTP server and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="INCEPTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Server ───────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    debug: bool = False

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = Field(
        default=None, description="Force JSON logs (None = auto-detect from tty)"
    )

    # ── Transport ────────────────────────────────────────────────
    post_mode: Literal["echo", "execute"] = Field(
        default="echo",
        description="POST requests echo the submitted sourceCode or execute it",
    )
    powered_by: str = Field(default="Sadness, mostly", description="X-Powered-By header value")

    # ── Ephemeral function definition ────────────────────────────
    name_length: int = Field(default=16, ge=1, le=64, description="Generated function name length")
    runtime: str = "python3.12"
    handler: str = "handler.main"
    function_description: str = "Invoke the provided codez"
    function_timeout_seconds: int = Field(default=30, ge=1, le=900)
    function_memory_mb: int = Field(default=128, ge=128, le=10240)

    # ── Identity ─────────────────────────────────────────────────
    execution_role: str | None = Field(
        default=None,
        description="Static role ARN; skips the self lookup when set",
    )
    self_name_env: str = Field(
        default="AWS_LAMBDA_FUNCTION_NAME",
        description="Environment variable holding the host function's own name",
    )

    # ── Backend ──────────────────────────────────────────────────
    aws_region: str | None = None
    aws_endpoint_url: str | None = None
    wait_until_active: bool = True

    # ── Deadlines and retries ────────────────────────────────────
    create_timeout_seconds: float = Field(default=60.0, gt=0)
    invoke_timeout_seconds: float = Field(default=900.0, gt=0)
    max_retries: int = Field(default=0, ge=0, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0)
    retry_max_delay: float = Field(default=10.0, ge=0)
    deletion_grace_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Lambda handler: time to let pending deletions finish before returning",
    )


@lru_cache(maxsize=1)
def get_settings() -> InceptorSettings:
    """Cached settings — loaded once per process."""
    return InceptorSettings()
