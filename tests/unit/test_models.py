"""Unit tests for the request/reply wire schema."""

import json

import pytest
from pydantic import ValidationError

from pki_queue.worker.errors import DecodeError
from pki_queue.worker.models import (
    CertificateRequest,
    CertificateResponse,
    decode_request,
    is_valid_queue_url,
)


class TestDecodeRequest:

    def test_well_formed_request(self):
        request = decode_request('{"username": "alice", "responseQueue": "q://resp-1"}')

        assert request.username == "alice"
        assert request.response_queue == "q://resp-1"

    def test_request_is_immutable(self):
        request = decode_request('{"username": "alice", "responseQueue": "q://resp-1"}')

        with pytest.raises(ValidationError):
            request.username = "mallory"

    def test_unknown_fields_ignored(self):
        request = decode_request(
            '{"username": "alice", "responseQueue": "q://resp-1", "extra": 1}'
        )
        assert request == CertificateRequest(username="alice", response_queue="q://resp-1")

    def test_invalid_json_has_no_response_queue(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_request("{not json")

        assert exc_info.value.response_queue is None
        assert str(exc_info.value).startswith("malformed certificate request:")

    def test_non_object_body(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_request('["alice"]')

        assert exc_info.value.response_queue is None

    def test_missing_username_keeps_response_queue(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_request('{"responseQueue": "q://resp-1"}')

        assert exc_info.value.response_queue == "q://resp-1"
        assert "username" in exc_info.value.reason

    @pytest.mark.parametrize("body", [
        '{"username": "", "responseQueue": "q://resp-1"}',
        '{"username": 7, "responseQueue": "q://resp-1"}',
    ])
    def test_empty_or_non_string_username(self, body):
        with pytest.raises(DecodeError) as exc_info:
            decode_request(body)

        assert exc_info.value.response_queue == "q://resp-1"

    def test_malformed_response_queue_is_not_recovered(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_request('{"responseQueue": "not a url"}')

        assert exc_info.value.response_queue is None

    def test_empty_object_is_not_an_empty_request(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_request("{}")

        assert exc_info.value.response_queue is None


class TestCertificateResponse:

    def test_success_encoding(self):
        payload = json.loads(CertificateResponse.ok("<pem>").to_json())

        assert payload == {"success": True, "body": "<pem>", "errorMessage": ""}

    def test_failure_encoding(self):
        payload = json.loads(CertificateResponse.failure("nope").to_json())

        assert payload == {"success": False, "body": "", "errorMessage": "nope"}

    @pytest.mark.parametrize("fields", [
        {"success": True, "body": ""},
        {"success": True, "body": "pem", "errorMessage": "also an error"},
        {"success": False, "errorMessage": ""},
        {"success": False, "body": "pem", "errorMessage": "error"},
    ])
    def test_exactly_one_of_body_or_error(self, fields):
        with pytest.raises(ValidationError):
            CertificateResponse(**fields)


class TestQueueUrl:

    @pytest.mark.parametrize("url", [
        "https://sqs.us-east-1.amazonaws.com/123456789012/openvpn-requests-a",
        "q://resp-1",
    ])
    def test_valid(self, url):
        assert is_valid_queue_url(url) is True

    @pytest.mark.parametrize("url", ["", None, "not a url", "openvpn-requests-a"])
    def test_invalid(self, url):
        assert is_valid_queue_url(url) is False
