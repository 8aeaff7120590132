"""Messaging-specific exceptions for tracing-lib."""

from __future__ import annotations

from ..exceptions import TracingLibError


class MessagingError(TracingLibError):
    """Base class for all messaging-related infrastructure errors."""


class MessagingConnectionError(MessagingError):
    """Raised when connectivity to the broker or stream fails (read, ack, connect)."""


class MessagingSerializationError(MessagingError):
    """Raised when an envelope cannot be encoded or decoded.

    Fatal to that single message; it is never retried through the processor.
    """


class PublishError(MessagingError):
    """Raised when publishing an envelope to the transport fails."""


class StreamNotFoundError(MessagingError):
    """Raised when publishing to a Redis stream that does not exist."""

    def __init__(self, stream_key: str) -> None:
        self.stream_key = stream_key
        super().__init__(f"stream does not exist: {stream_key}")


class MaxRetriesExceededError(MessagingError):
    """Raised when an envelope reached the retry ceiling; the message is abandoned."""

    def __init__(self, retries: int, max_retries: int) -> None:
        self.retries = retries
        self.max_retries = max_retries
        super().__init__(f"max retries reached ({retries}/{max_retries})")
