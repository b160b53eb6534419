"""Test doubles for the queue transport, the CA gateway and boto3 errors."""

import re
from collections import deque
from pathlib import Path
from typing import Optional

from botocore.exceptions import ClientError
from cryptography import x509
from cryptography.exceptions import InvalidSignature

from pki_queue.pki_service.gateway import (
    CertificateAuthorityGateway,
    CertificateExistsError,
    CertificateNotFoundError,
)
from pki_queue.worker.errors import TransportError
from pki_queue.worker.transport import QueueMessage, QueueTransport

REQUEST_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/openvpn-requests-test"
FAKE_PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"
PEM_CERT = re.compile(
    r"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----\n", re.DOTALL
)


def split_bundle(bundle: str) -> tuple[x509.Certificate, x509.Certificate]:
    """Return (client_cert, ca_cert) from an issued bundle."""
    certs = [x509.load_pem_x509_certificate(m.encode()) for m in PEM_CERT.findall(bundle)]
    assert len(certs) == 2
    return certs[0], certs[1]


def issued_by(cert: x509.Certificate, ca_cert: x509.Certificate) -> bool:
    """True if cert carries a valid signature from ca_cert."""
    try:
        cert.verify_directly_issued_by(ca_cert)
    except (ValueError, TypeError, InvalidSignature):
        return False
    return True


def common_name(cert: x509.Certificate) -> Optional[str]:
    attrs = cert.subject.get_attributes_for_oid(x509.oid.NameOID.COMMON_NAME)
    return attrs[0].value if attrs else None


def load_crl(path: Path) -> x509.CertificateRevocationList:
    return x509.load_pem_x509_crl(path.read_bytes())


def client_error(code: str, operation: str = "Operation", message: str = "boom") -> ClientError:
    """Build a real botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeTransport(QueueTransport):
    """
    In-memory queues keyed by URL.

    Every call is appended to `calls` as (operation, endpoint, payload) so tests
    can assert on ordering. Failures are scripted per operation.
    """

    def __init__(self):
        self.queues: dict[str, deque] = {}
        self.in_flight: dict[str, QueueMessage] = {}
        self.calls: list[tuple] = []
        self.receive_failures = 0
        self.fail_send = False
        self.fail_delete = False
        self._counter = 0

    def put(self, endpoint: str, body: str) -> QueueMessage:
        self._counter += 1
        message = QueueMessage(
            receipt=f"receipt-{self._counter}", body=body, message_id=f"msg-{self._counter}"
        )
        self.queues.setdefault(endpoint, deque()).append(message)
        return message

    def bodies(self, endpoint: str) -> list[str]:
        return [message.body for message in self.queues.get(endpoint, [])]

    def receive(self, endpoint: str, wait_seconds: int) -> Optional[QueueMessage]:
        self.calls.append(("receive", endpoint, wait_seconds))
        if self.receive_failures:
            self.receive_failures -= 1
            raise TransportError("receive", endpoint, "connection reset")

        queue = self.queues.get(endpoint)
        if not queue:
            return None
        # Stays visible for redelivery until deleted
        message = queue.popleft()
        self.in_flight[message.receipt] = message
        return message

    def send(self, endpoint: str, body: str) -> str:
        self.calls.append(("send", endpoint, body))
        if self.fail_send:
            raise TransportError("send", endpoint, "access denied")
        return self.put(endpoint, body).message_id

    def delete(self, endpoint: str, receipt: str) -> None:
        self.calls.append(("delete", endpoint, receipt))
        if self.fail_delete:
            raise TransportError("delete", endpoint, "access denied")
        self.in_flight.pop(receipt, None)

    def redeliver_in_flight(self, endpoint: str):
        """Simulate visibility timeouts expiring for every unacknowledged message."""
        for message in self.in_flight.values():
            self.queues.setdefault(endpoint, deque()).append(message)
        self.in_flight.clear()

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeGateway(CertificateAuthorityGateway):
    """In-memory CA that records every call."""

    def __init__(self, existing: tuple = (), fail_check: bool = False, fail_issue: bool = False):
        self.valid = set(existing)
        self.fail_check = fail_check
        self.fail_issue = fail_issue
        self.issued: list[str] = []
        self.revoked: list[str] = []

    def has_valid_certificate(self, username: str) -> bool:
        if self.fail_check:
            raise OSError("index unreadable")
        return username in self.valid

    def issue(self, username: str) -> str:
        if self.fail_issue:
            raise RuntimeError(f"failed to sign certificate for {username}")
        if username in self.valid:
            raise CertificateExistsError(username)
        self.issued.append(username)
        self.valid.add(username)
        return FAKE_PEM

    def revoke(self, username: str) -> None:
        if username not in self.valid:
            raise CertificateNotFoundError(username)
        self.revoked.append(username)
        self.valid.discard(username)


def test_fake_transport_redelivers_unacknowledged():
    transport = FakeTransport()
    transport.put(REQUEST_URL, "hello")

    first = transport.receive(REQUEST_URL, 1)
    assert transport.receive(REQUEST_URL, 1) is None

    transport.redeliver_in_flight(REQUEST_URL)
    again = transport.receive(REQUEST_URL, 1)
    assert again == first


def test_fake_gateway_enforces_single_certificate():
    gateway = FakeGateway()
    gateway.issue("alice")
    assert gateway.has_valid_certificate("alice")
    gateway.revoke("alice")
    assert not gateway.has_valid_certificate("alice")
