"""Envelope messaging: codec, retry processor and transports.

Transports live in subpackages so their client libraries load only when used:
``tracing_lib.messaging.redis``, ``tracing_lib.messaging.rabbitmq`` and
``tracing_lib.messaging.memory``.
"""

from __future__ import annotations

from .envelope import TRACEPARENT, TRACESTATE, Envelope, EventHeader
from .exceptions import (
    MaxRetriesExceededError,
    MessagingConnectionError,
    MessagingError,
    MessagingSerializationError,
    PublishError,
    StreamNotFoundError,
)
from .ports import IEnvelopePublisher
from .processor import MAX_RETRIES, ProcessorConfig, RetryProcessor
from .retry import ExponentialBackOff
from .serialization import EnvelopeSerializer

__all__ = [
    "MAX_RETRIES",
    "TRACEPARENT",
    "TRACESTATE",
    "Envelope",
    "EnvelopeSerializer",
    "EventHeader",
    "ExponentialBackOff",
    "IEnvelopePublisher",
    "MaxRetriesExceededError",
    "MessagingConnectionError",
    "MessagingError",
    "MessagingSerializationError",
    "ProcessorConfig",
    "PublishError",
    "RetryProcessor",
    "StreamNotFoundError",
]
