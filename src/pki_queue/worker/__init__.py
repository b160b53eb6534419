"""Queue worker - resolves queues and serves certificate requests."""

from .dispatcher import Backoff, CycleOutcome, Dispatcher
from .models import CertificateRequest, CertificateResponse
from .processor import RequestProcessor, RevokeProcessor
from .resolver import Endpoint, QueueResolver
from .transport import QueueMessage, QueueTransport, SqsTransport

__all__ = [
    'Backoff',
    'CycleOutcome',
    'Dispatcher',
    'CertificateRequest',
    'CertificateResponse',
    'RequestProcessor',
    'RevokeProcessor',
    'Endpoint',
    'QueueResolver',
    'QueueMessage',
    'QueueTransport',
    'SqsTransport',
]
