"""Wire schema for certificate requests and replies."""

import json
from typing import Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from .errors import DecodeError

_url_adapter = TypeAdapter(AnyUrl)


def is_valid_queue_url(url: Optional[str]) -> bool:
    """Generic URL well-formedness check used for every queue address."""
    if not url:
        return False
    try:
        _url_adapter.validate_python(url)
    except ValidationError:
        return False
    return True


class CertificateRequest(BaseModel):
    """Inbound request: a PKI operation for one client."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    username: str = Field(..., min_length=1, description="PKI subject the operation applies to")
    response_queue: str = Field(
        ..., min_length=1, alias="responseQueue", description="Queue URL the reply is sent to"
    )


class CertificateResponse(BaseModel):
    """Outbound reply. Exactly one of body or error_message is populated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    body: str = ""
    error_message: str = Field("", alias="errorMessage")

    @model_validator(mode="after")
    def _check_exclusive(self) -> "CertificateResponse":
        if self.success and (not self.body or self.error_message):
            raise ValueError("a successful response carries a body and no error message")
        if not self.success and (self.body or not self.error_message):
            raise ValueError("a failed response carries an error message and no body")
        return self

    @classmethod
    def ok(cls, body: str) -> "CertificateResponse":
        return cls(success=True, body=body)

    @classmethod
    def failure(cls, message: str) -> "CertificateResponse":
        return cls(success=False, error_message=message)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


def decode_request(raw_body: str) -> CertificateRequest:
    """
    Decode an inbound message body.

    Raises:
        DecodeError: If the body is not a well-formed request. When the body
            still names a well-formed response queue URL, it is kept on the
            error so the failure can be reported back to the requester.
    """
    try:
        payload = json.loads(raw_body)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"body is not valid JSON ({e})")

    if not isinstance(payload, dict):
        raise DecodeError("body is not a JSON object")

    response_queue = payload.get("responseQueue")
    if not isinstance(response_queue, str) or not is_valid_queue_url(response_queue):
        response_queue = None

    try:
        return CertificateRequest.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) or "body" for error in e.errors()
        )
        raise DecodeError(f"invalid or missing field(s): {fields}", response_queue=response_queue)
