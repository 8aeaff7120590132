"""RabbitMQConsumer: sequential delivery loop with ack-always semantics."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Generic

import aio_pika
from aio_pika.exceptions import AMQPException, ChannelInvalidStateError

from ..envelope import PayloadT
from ..exceptions import MessagingConnectionError
from ..serialization import EnvelopeSerializer
from .propagation import extract_trace_context_from_delivery

if TYPE_CHECKING:
    from aio_pika.abc import (
        AbstractIncomingMessage,
        AbstractQueue,
        AbstractQueueIterator,
    )

    from ...structured_logging import ServiceLogger
    from ..ports import EnvelopeHandler
    from .connection import RabbitMQConnectionManager

_log = logging.getLogger("tracing_lib.messaging.rabbitmq")


class RabbitMQConsumer(Generic[PayloadT]):
    """Consumes one durable queue bound to a durable exchange.

    Deliveries are handled strictly one at a time and always acknowledged;
    failed envelopes come back through the retry processor's republish.
    """

    def __init__(
        self,
        connection: RabbitMQConnectionManager,
        *,
        exchange_name: str,
        queue_name: str,
        binding_key: str,
        exchange_type: aio_pika.ExchangeType = aio_pika.ExchangeType.DIRECT,
        consumer_tag: str | None = None,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        """Configure the consumer.

        Args:
            connection: Shared connection manager.
            exchange_name: Exchange declared (durable) and bound to.
            queue_name: Durable queue to consume.
            binding_key: Routing key the queue is bound with.
            exchange_type: Defaults to ``direct``.
            consumer_tag: Broker-side consumer identifier.
            serializer: Decodes message bodies into typed envelopes.
            logger: Defaults to the module logger.
        """
        self._connection = connection
        self._exchange_name = exchange_name
        self._queue_name = queue_name
        self._binding_key = binding_key
        self._exchange_type = exchange_type
        self._consumer_tag = consumer_tag
        self._serializer = serializer or EnvelopeSerializer()
        self._log = logger or _log
        self._iterator: AbstractQueueIterator | None = None

    async def consume(
        self,
        handler: EnvelopeHandler[PayloadT],
        *,
        stop: asyncio.Event | None = None,
    ) -> None:
        """Declare the topology and handle deliveries until stopped.

        Raises:
            MessagingConnectionError: Declaring, consuming or acking failed.
        """
        await self._connection.connect()
        watcher = (
            asyncio.create_task(self._stop_on(stop)) if stop is not None else None
        )
        try:
            queue = await self._declare()
            kwargs = {"consumer_tag": self._consumer_tag} if self._consumer_tag else {}
            async with queue.iterator(**kwargs) as iterator:
                self._iterator = iterator
                if stop is not None and stop.is_set():
                    return
                self._log.info("consuming", extra={"queue": self._queue_name})
                async for message in iterator:
                    await self._handle(message, handler)
        except (AMQPException, ChannelInvalidStateError) as e:
            raise MessagingConnectionError(f"failed to consume: {e}") from e
        finally:
            self._iterator = None
            if watcher is not None:
                watcher.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await watcher

    async def _declare(self) -> AbstractQueue:
        channel = self._connection.channel
        await channel.set_qos(prefetch_count=1)
        exchange = await channel.declare_exchange(
            self._exchange_name, self._exchange_type, durable=True
        )
        queue = await channel.declare_queue(self._queue_name, durable=True)
        await queue.bind(exchange, routing_key=self._binding_key)
        return queue

    async def _handle(
        self,
        message: AbstractIncomingMessage,
        handler: EnvelopeHandler[PayloadT],
    ) -> None:
        self._log.debug(
            "got delivery",
            extra={"delivery_tag": message.delivery_tag, "bytes": len(message.body)},
        )
        try:
            envelope = self._serializer.deserialize(message.body)
            await handler(envelope, extract_trace_context_from_delivery(message))
        except Exception:  # noqa: BLE001
            self._log.exception(
                "failed to consume message",
                extra={"delivery_tag": message.delivery_tag},
            )
        await message.ack()

    async def _stop_on(self, event: asyncio.Event) -> None:
        await event.wait()
        await self.stop()

    async def stop(self) -> None:
        """Cancel the broker-side consumer; ``consume()`` then returns."""
        if self._iterator is not None:
            await self._iterator.close()
