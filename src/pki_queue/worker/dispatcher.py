"""Worker loop: receive, process, reply, acknowledge."""

import enum
import logging
import random
import time
from typing import Callable, Optional

from .errors import DecodeError, ReplyAddressError, TransportError, WorkerError
from .models import is_valid_queue_url
from .processor import Processor
from .resolver import Endpoint
from .transport import QueueTransport

logger = logging.getLogger(__name__)

EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


class CycleOutcome(enum.Enum):
    EMPTY = "empty"
    RECEIVE_FAILED = "receive_failed"
    REPLIED = "replied"
    DROPPED = "dropped"


class Backoff:
    """Capped exponential backoff with jitter. Caps the delay, never the attempts."""

    def __init__(self, initial: float = 1.0, maximum: float = 60.0, jitter: float = 0.1):
        self.initial = initial
        self.maximum = maximum
        self.jitter = jitter
        self.attempt = 0

    def next_delay(self) -> float:
        base = min(self.maximum, self.initial * (2 ** min(self.attempt, 32)))
        self.attempt += 1
        return min(self.maximum, base + random.uniform(0, base * self.jitter))

    def reset(self):
        self.attempt = 0


class Dispatcher:
    """
    Serve one endpoint until a fatal error.

    The inbound message is deleted only after its reply was sent. A crash
    before the reply leaves the message for redelivery; a crash between reply
    and delete causes a redelivery that the processor answers as a duplicate.
    """

    def __init__(
        self,
        transport: QueueTransport,
        processor: Processor,
        endpoint: Endpoint,
        wait_seconds: int = 20,
        backoff: Optional[Backoff] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.transport = transport
        self.processor = processor
        self.endpoint = endpoint
        self.wait_seconds = wait_seconds
        self.backoff = backoff or Backoff()
        self.sleep = sleep

    def run(self) -> int:
        """
        Loop until a fatal error.

        Returns:
            Exit code for the process
        """
        logger.info(f"Waiting for messages on {self.endpoint.url}")
        try:
            while True:
                self.run_once()
        except WorkerError as e:
            logger.error(f"Fatal error, stopping worker: {e}")
            return EXIT_FATAL
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping worker")
            return EXIT_INTERRUPTED
        except Exception as e:
            logger.exception(f"Unexpected error, stopping worker: {e}")
            return EXIT_FATAL

    def run_once(self) -> CycleOutcome:
        """
        Run a single cycle.

        Raises:
            TransportError: send or delete failed
            ReplyAddressError: the request names an unusable response queue
        """
        try:
            message = self.transport.receive(self.endpoint.url, self.wait_seconds)
        except TransportError as e:
            delay = self.backoff.next_delay()
            logger.warning(f"{e}; retrying in {delay:.1f}s")
            self.sleep(delay)
            return CycleOutcome.RECEIVE_FAILED

        self.backoff.reset()
        if message is None:
            return CycleOutcome.EMPTY

        try:
            response_queue, response = self.processor.process(message.body)
        except DecodeError as e:
            logger.error(f"Dropping message {message.message_id} with no usable response queue: {e}")
            self.transport.delete(self.endpoint.url, message.receipt)
            return CycleOutcome.DROPPED

        if not is_valid_queue_url(response_queue):
            raise ReplyAddressError(response_queue)

        self.transport.send(response_queue, response.to_json())
        self.transport.delete(self.endpoint.url, message.receipt)

        logger.info(
            f"Replied to message {message.message_id} on {response_queue} "
            f"(success={response.success})"
        )
        return CycleOutcome.REPLIED
