"""Error kinds raised by the queue worker."""

from typing import Optional, Sequence


class WorkerError(Exception):
    """Base class for queue worker failures."""

    kind = "worker"


class ConfigurationError(WorkerError):
    """An endpoint could not be resolved. Fatal at startup, never retried."""

    kind = "configuration"


class QueueNotFoundError(ConfigurationError):
    kind = "not_found"

    def __init__(self, role: str, prefix: str, reason: Optional[str] = None):
        self.role = role
        self.prefix = prefix
        self.reason = reason
        message = f"Could not find any SQS queues with the name prefix '{prefix}'."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class AmbiguousQueueError(ConfigurationError):
    kind = "ambiguous"

    def __init__(self, role: str, prefix: str, candidates: Sequence[str], option_name: str):
        self.role = role
        self.prefix = prefix
        self.candidates = list(candidates)
        self.option_name = option_name
        super().__init__(
            f"Expected to find exactly one queue with prefix '{prefix}' but found "
            f"{len(self.candidates)}: {self.candidates}. Please specify which queue URL "
            f"to use using the {option_name} argument."
        )


class InvalidEndpointError(ConfigurationError):
    kind = "invalid_endpoint"

    def __init__(self, role: str, url: str):
        self.role = role
        self.url = url
        super().__init__(f"Invalid {role} queue URL: '{url}'")


class TransportError(WorkerError):
    """A queue operation failed. Transient on receive, fatal on send/delete."""

    kind = "transport"

    def __init__(self, operation: str, endpoint: str, message: str):
        self.operation = operation
        self.endpoint = endpoint
        super().__init__(f"SQS {operation} on {endpoint} failed: {message}")


class ReplyAddressError(WorkerError):
    """The response queue named by a request is missing or malformed."""

    kind = "reply_address"

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Cannot deliver reply: invalid response queue '{address}'")


class DecodeError(WorkerError):
    """An inbound message body is not a well-formed request."""

    kind = "decode"

    def __init__(self, reason: str, response_queue: Optional[str] = None):
        self.reason = reason
        self.response_queue = response_queue
        super().__init__(f"malformed certificate request: {reason}")
