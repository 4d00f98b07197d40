"""Tests for the AWS Lambda entry point."""

from __future__ import annotations

import base64
from types import SimpleNamespace

import pytest

from inceptor import lambda_handler
from inceptor.lambda_handler import handler, request_from_event


def _event(method: str = "GET", *, query=None, body=None, encoded=False) -> dict:
    event = {
        "version": "2.0",
        "rawPath": "/",
        "requestContext": {"http": {"method": method, "path": "/"}},
        "isBase64Encoded": encoded,
    }
    if query is not None:
        event["queryStringParameters"] = query
    if body is not None:
        event["body"] = body
    return event


CONTEXT = SimpleNamespace(aws_request_id="req-1", function_name="inceptor-host")


@pytest.fixture
def installed_pipeline(pipeline):
    lambda_handler.set_pipeline(pipeline)
    yield pipeline
    lambda_handler.set_pipeline(None)


class TestRequestFromEvent:
    def test_http_api_event(self):
        request = request_from_event(_event("POST", body="e30=", encoded=True))
        assert request.method == "POST"
        assert request.body == "e30="
        assert request.is_base64_encoded is True
        assert request.query_params == {}

    def test_rest_api_event(self):
        request = request_from_event({"httpMethod": "GET", "queryStringParameters": {"sourceCode": "pass"}})
        assert request.method == "GET"
        assert request.query_params == {"sourceCode": "pass"}

    def test_null_query_parameters(self):
        assert request_from_event({"queryStringParameters": None}).query_params == {}


class TestHandler:
    def test_get_returns_api_gateway_response(self, installed_pipeline, stub_backend):
        response = handler(_event(query={"sourceCode": "return 1+1"}), CONTEXT)
        assert response == {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json", "X-Powered-By": "Sadness, mostly"},
            "body": "2",
        }
        assert stub_backend.created_specs[0].artifact.read_member() == "def main(event, context):\n\treturn 1+1\n"

    def test_missing_source_code(self, installed_pipeline):
        response = handler(_event(), CONTEXT)
        assert response["statusCode"] == 400
        assert response["body"] == "You didn't supply sourceCode!"

    def test_post_echo(self, installed_pipeline):
        body = base64.b64encode(b'{"sourceCode":"pass"}').decode()
        response = handler(_event("POST", body=body, encoded=True), CONTEXT)
        assert response["statusCode"] == 200
        assert response["body"] == "pass"

    def test_post_bad_base64(self, installed_pipeline):
        response = handler(_event("POST", body="@@@", encoded=True), CONTEXT)
        assert response["statusCode"] == 400
        assert response["body"].startswith("Error parsing base64-encoded parameters: ")

    def test_deletions_progress_on_next_invocation(self, installed_pipeline, stub_backend):
        handler(_event(query={"sourceCode": "return 1"}), CONTEXT)
        handler(_event(), CONTEXT)
        assert stub_backend.delete_count == 1

    def test_grace_period_waits_for_deletion(self, host_env, stub_backend, settings):
        from inceptor.execution.pipeline import ExecutionPipeline

        graced = settings.model_copy(update={"deletion_grace_seconds": 1.0})
        lambda_handler.set_pipeline(ExecutionPipeline(stub_backend, settings=graced))
        try:
            handler(_event(query={"sourceCode": "return 1"}), CONTEXT)
        finally:
            lambda_handler.set_pipeline(None)
        assert stub_backend.delete_count == 1
