from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from opentelemetry.context import Context

    from .envelope import Envelope, PayloadT

    EnvelopeHandler = Callable[[Envelope[PayloadT], Context], Awaitable[Any]]
    PayloadHandler = Callable[[PayloadT], Awaitable[Any]]


@runtime_checkable
class IEnvelopePublisher(Protocol):
    """
    Port for publishing envelopes back onto a transport (Redis stream, AMQP
    exchange, in-memory bus).

    The retry processor republishes failed envelopes through this port.
    """

    async def publish(self, envelope: Envelope[Any]) -> Any:
        """
        Publish *envelope*.

        Raises:
            MessagingError: When the transport rejects the message.
        """
        ...
