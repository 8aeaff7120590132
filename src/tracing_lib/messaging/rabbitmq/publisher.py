"""RabbitMQPublisher: persistent, trace-stamped envelope messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic

import aio_pika
from aio_pika.exceptions import AMQPException, ChannelInvalidStateError

from ..envelope import PayloadT
from ..exceptions import PublishError
from ..serialization import EnvelopeSerializer
from .propagation import wrap_publish_message

if TYPE_CHECKING:
    from aio_pika.abc import AbstractExchange

    from ...structured_logging import ServiceLogger
    from ..envelope import Envelope
    from .connection import RabbitMQConnectionManager

_log = logging.getLogger("tracing_lib.messaging.rabbitmq")


class RabbitMQPublisher(Generic[PayloadT]):
    """Publishes envelopes to a durable exchange under one routing key.

    The body is the base64 JSON envelope (same encoding as the Redis stream
    entries); the current trace context travels in the message headers.
    """

    def __init__(
        self,
        connection: RabbitMQConnectionManager,
        *,
        exchange_name: str,
        routing_key: str,
        exchange_type: aio_pika.ExchangeType = aio_pika.ExchangeType.DIRECT,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        self._connection = connection
        self._exchange_name = exchange_name
        self._routing_key = routing_key
        self._exchange_type = exchange_type
        self._serializer = serializer or EnvelopeSerializer()
        self._log = logger or _log
        self._exchange: AbstractExchange | None = None

    async def _ensure_exchange(self) -> AbstractExchange:
        if self._exchange is None:
            self._exchange = await self._connection.channel.declare_exchange(
                self._exchange_name, self._exchange_type, durable=True
            )
        return self._exchange

    async def publish(self, envelope: Envelope[PayloadT]) -> None:
        """Publish *envelope*.

        Raises:
            MessagingConnectionError: The broker is unreachable.
            MessagingSerializationError: The envelope could not be encoded.
            PublishError: The broker rejected the message.
        """
        await self._connection.connect()
        body = self._serializer.serialize(envelope).encode("ascii")
        message = wrap_publish_message(
            aio_pika.Message(
                body=body,
                content_type="text/plain",
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                headers={},
            )
        )
        try:
            exchange = await self._ensure_exchange()
            await exchange.publish(message, routing_key=self._routing_key)
        except (AMQPException, ChannelInvalidStateError) as e:
            raise PublishError(f"failed to publish message: {e}") from e
        self._log.debug(
            "published message",
            extra={"exchange": self._exchange_name, "bytes": len(body)},
        )
