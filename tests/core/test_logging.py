"""Tests for structured logging configuration."""

from __future__ import annotations

import json

import pytest
import structlog

from inceptor.core.logging import bind_context, configure_logging, get_logger, unbind_context


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_output_uses_ecs_field_names(capsys):
    configure_logging(level="INFO", json_format=True, service="inceptor-test")
    get_logger("tests").info("function.created", function_name="abcdefghijklmnop")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "function.created"
    assert record["function_name"] == "abcdefghijklmnop"
    assert record["log.level"] == "info"
    assert record["service.name"] == "inceptor-test"
    assert "@timestamp" in record


def test_bound_context_is_included_then_removed(capsys):
    configure_logging(level="INFO", json_format=True)
    logger = get_logger("tests")

    bind_context(request_id="req-1")
    logger.info("with.context")
    unbind_context("request_id")
    logger.info("without.context")

    first, second = (json.loads(line) for line in capsys.readouterr().out.strip().splitlines()[-2:])
    assert first["request_id"] == "req-1"
    assert "request_id" not in second


def test_level_filters_lower_levels(capsys):
    configure_logging(level="WARNING", json_format=True)
    get_logger("tests").info("hidden")
    assert "hidden" not in capsys.readouterr().out
