"""Queue transport: receive, send and delete against a queue endpoint."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .errors import TransportError

logger = logging.getLogger(__name__)

# Error codes meaning the receipt was already redeemed or its lease expired.
STALE_RECEIPT_CODES = frozenset({
    "ReceiptHandleIsInvalid",
    "InvalidParameterValue",
    "AWS.SimpleQueueService.ReceiptHandleIsInvalid",
})


@dataclass(frozen=True)
class QueueMessage:
    """A received message. The receipt must be redeemed by delete() before its lease expires."""

    receipt: str
    body: str
    message_id: str = ""


class QueueTransport(ABC):

    @abstractmethod
    def receive(self, endpoint: str, wait_seconds: int) -> Optional[QueueMessage]:
        """Long-poll endpoint for one message; None when the wait elapses empty."""
        raise NotImplementedError

    @abstractmethod
    def send(self, endpoint: str, body: str) -> str:
        """Send body to endpoint and return the message id."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, endpoint: str, receipt: str) -> None:
        """Acknowledge a message. Stale receipts are not an error."""
        raise NotImplementedError


def _error_code(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


class SqsTransport(QueueTransport):
    """QueueTransport over a boto3 SQS client."""

    def __init__(self, sqs_client):
        self.sqs = sqs_client

    def receive(self, endpoint: str, wait_seconds: int) -> Optional[QueueMessage]:
        try:
            resp = self.sqs.receive_message(
                QueueUrl=endpoint,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=wait_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransportError("receive", endpoint, str(e)) from e

        messages = resp.get("Messages") or []
        if not messages:
            return None

        message = messages[0]
        message_id = message.get("MessageId", "")
        receipt = message.get("ReceiptHandle")
        if not receipt:
            raise TransportError("receive", endpoint, f"message {message_id} has no receipt handle")

        logger.debug(f"Received message {message_id} from {endpoint}")
        return QueueMessage(
            receipt=receipt,
            body=message.get("Body", ""),
            message_id=message_id,
        )

    def send(self, endpoint: str, body: str) -> str:
        try:
            resp = self.sqs.send_message(QueueUrl=endpoint, MessageBody=body)
        except (BotoCoreError, ClientError) as e:
            raise TransportError("send", endpoint, str(e)) from e

        msg_id = resp.get("MessageId", "")
        logger.debug(f"Sent message {msg_id} to {endpoint}")
        return msg_id

    def delete(self, endpoint: str, receipt: str) -> None:
        try:
            self.sqs.delete_message(QueueUrl=endpoint, ReceiptHandle=receipt)
        except (BotoCoreError, ClientError) as e:
            if _error_code(e) in STALE_RECEIPT_CODES:
                logger.warning(f"Receipt already consumed or expired on {endpoint}: {e}")
                return
            raise TransportError("delete", endpoint, str(e)) from e
