"""
Shared pytest fixtures and configuration for inceptor tests.

This module provides:
- Settings with short deadlines and a known host function
- An in-memory provisioning backend seeded with the host function
- A pipeline wired to that backend
- Settings cache and logging context cleanup for test isolation

Usage:
    Fixtures are auto-discovered by pytest. Use them as function
    arguments (pytest injects them automatically).

    async def test_something(pipeline, stub_backend):
        ...
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

# Ensure inceptor package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from inceptor.core.settings import InceptorSettings, get_settings
from inceptor.execution.pipeline import ExecutionPipeline
from inceptor.execution.runtimes._base import StubProvisioningBackend

HOST_FUNCTION = "inceptor-host"
HOST_ROLE = "arn:aws:iam::123456789012:role/inceptor-host"


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings so environment changes in one test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_log_context() -> Generator[None, None, None]:
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def host_env(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pretend to run inside the host Lambda function."""
    monkeypatch.setenv("AWS_LAMBDA_FUNCTION_NAME", HOST_FUNCTION)
    return HOST_FUNCTION


# =============================================================================
# Settings, backend, pipeline
# =============================================================================


@pytest.fixture
def settings() -> InceptorSettings:
    return InceptorSettings(
        _env_file=None,
        post_mode="echo",
        create_timeout_seconds=2.0,
        invoke_timeout_seconds=2.0,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def execute_settings(settings: InceptorSettings) -> InceptorSettings:
    return settings.model_copy(update={"post_mode": "execute"})


@pytest.fixture
def stub_backend() -> StubProvisioningBackend:
    backend = StubProvisioningBackend(payload=b"2")
    backend.add_existing(HOST_FUNCTION, HOST_ROLE)
    return backend


@pytest.fixture
def pipeline(host_env, stub_backend, settings) -> ExecutionPipeline:
    return ExecutionPipeline(stub_backend, settings=settings)


@pytest.fixture
def execute_pipeline(host_env, stub_backend, execute_settings) -> ExecutionPipeline:
    return ExecutionPipeline(stub_backend, settings=execute_settings)
