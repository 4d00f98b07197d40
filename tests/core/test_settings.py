"""Tests for InceptorSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from inceptor.core.settings import InceptorSettings, get_settings


class TestDefaults:
    def test_function_definition_defaults(self):
        s = InceptorSettings(_env_file=None)
        assert s.name_length == 16
        assert s.handler == "handler.main"
        assert s.function_description == "Invoke the provided codez"
        assert s.self_name_env == "AWS_LAMBDA_FUNCTION_NAME"
        assert s.execution_role is None

    def test_transport_defaults(self):
        s = InceptorSettings(_env_file=None)
        assert s.post_mode == "echo"
        assert s.powered_by == "Sadness, mostly"

    def test_no_retries_by_default(self):
        assert InceptorSettings(_env_file=None).max_retries == 0


class TestEnvironment:
    def test_prefixed_env_vars_override(self, monkeypatch):
        monkeypatch.setenv("INCEPTOR_POST_MODE", "execute")
        monkeypatch.setenv("INCEPTOR_NAME_LENGTH", "24")
        monkeypatch.setenv("INCEPTOR_EXECUTION_ROLE", "arn:aws:iam::1:role/r")
        s = InceptorSettings(_env_file=None)
        assert s.post_mode == "execute"
        assert s.name_length == 24
        assert s.execution_role == "arn:aws:iam::1:role/r"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidation:
    def test_unknown_post_mode_rejected(self):
        with pytest.raises(ValidationError):
            InceptorSettings(_env_file=None, post_mode="shout")

    @pytest.mark.parametrize("length", [0, 65])
    def test_name_length_bounds(self, length):
        with pytest.raises(ValidationError):
            InceptorSettings(_env_file=None, name_length=length)

    def test_deadlines_must_be_positive(self):
        with pytest.raises(ValidationError):
            InceptorSettings(_env_file=None, invoke_timeout_seconds=0)
