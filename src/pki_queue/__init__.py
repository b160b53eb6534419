"""Idempotent certificate issuance over SQS request/reply queues."""

__version__ = "1.0.0"
