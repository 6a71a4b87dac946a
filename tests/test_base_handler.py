"""
Tests for the shared Lambda handler base: envelopes, body parsing and error mapping.
"""

import base64
import json

import pytest

from common.base_handler import BaseLambdaHandler, request_method, request_path
from common.exceptions import RecordNotFoundException, ValidationException
from common.models import WebhookRequest


class EchoHandler(BaseLambdaHandler):
    def _execute(self, event, context):
        return self._success_response(self._parse_webhook_body(event))


class FailingHandler(BaseLambdaHandler):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def _execute(self, event, context):
        raise self.error


def test_base64_body_is_decoded():
    body = base64.b64encode(json.dumps({"dealId": "1"}).encode()).decode()

    response = EchoHandler().handle({"body": body, "isBase64Encoded": True}, None)

    assert json.loads(response["body"]) == {"dealId": "1"}


def test_empty_body_parses_to_empty_object():
    response = EchoHandler().handle({"body": None}, None)
    assert json.loads(response["body"]) == {}


def test_non_object_body_is_rejected():
    with pytest.raises(ValidationException, match="JSON object"):
        EchoHandler()._validate_body(WebhookRequest, {"body": "[1, 2]"})


def test_proxy_exception_maps_to_its_status():
    response = FailingHandler(RecordNotFoundException("deals", "1")).handle({}, None)

    assert response["statusCode"] == 404
    body = json.loads(response["body"])
    assert body["error"] == "No deals record found with id 1"
    assert body["details"] == {"recordType": "deals", "recordId": "1"}
    assert body["timestamp"]


def test_unexpected_exception_is_500():
    response = FailingHandler(RuntimeError("boom")).handle({}, None)

    assert response["statusCode"] == 500
    assert json.loads(response["body"])["error"] == "boom"


def test_reraise_errors():
    handler = FailingHandler(RuntimeError("boom"))
    handler.reraise_errors = True

    with pytest.raises(RuntimeError):
        handler.handle({}, None)


@pytest.mark.parametrize(
    "event,path,method",
    [
        ({"httpMethod": "post", "path": "/api/webhook/"}, "/api/webhook", "POST"),
        ({"rawPath": "/", "requestContext": {"http": {"method": "GET"}}}, "/", "GET"),
        ({}, "/", "GET"),
    ],
)
def test_request_path_and_method(event, path, method):
    assert request_path(event) == path
    assert request_method(event) == method
