"""Turn a raw request body into the reply owed to the requester."""

from abc import ABC, abstractmethod
from typing import Tuple
import logging

from ..pki_service.gateway import (
    CertificateAuthorityGateway,
    CertificateExistsError,
    CertificateNotFoundError,
)
from .errors import DecodeError
from .models import CertificateRequest, CertificateResponse, decode_request

logger = logging.getLogger(__name__)


class Processor(ABC):
    """
    Decode a request, run one PKI operation and encode the outcome.

    Business failures never escape process(): the reply queue is the only
    channel back to the requester, so every failure becomes a response.
    """

    def __init__(self, gateway: CertificateAuthorityGateway):
        self.gateway = gateway

    def process(self, raw_body: str) -> Tuple[str, CertificateResponse]:
        """
        Returns:
            (response_queue, response)

        Raises:
            DecodeError: The body is malformed and names no response queue to report to
        """
        try:
            request = decode_request(raw_body)
        except DecodeError as e:
            if e.response_queue is None:
                raise
            logger.warning(f"Rejecting malformed request: {e}")
            return e.response_queue, CertificateResponse.failure(str(e))

        try:
            response = self.handle(request)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"{type(self).__name__} failed for {request.username}: {message}")
            response = CertificateResponse.failure(message)

        return request.response_queue, response

    @abstractmethod
    def handle(self, request: CertificateRequest) -> CertificateResponse:
        raise NotImplementedError


class RequestProcessor(Processor):
    """Issue a certificate unless the client already holds a valid one."""

    def handle(self, request: CertificateRequest) -> CertificateResponse:
        if self.gateway.has_valid_certificate(request.username):
            logger.info(f"Rejecting duplicate certificate request for {request.username}")
            return CertificateResponse.failure(str(CertificateExistsError(request.username)))

        pem = self.gateway.issue(request.username)
        logger.info(f"Issued certificate for {request.username}")
        return CertificateResponse.ok(pem)


class RevokeProcessor(Processor):
    """Revoke the client's valid certificate."""

    def handle(self, request: CertificateRequest) -> CertificateResponse:
        if not self.gateway.has_valid_certificate(request.username):
            return CertificateResponse.failure(str(CertificateNotFoundError(request.username)))

        self.gateway.revoke(request.username)
        logger.info(f"Revoked certificate for {request.username}")
        return CertificateResponse.ok(request.username)
