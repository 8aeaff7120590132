"""RedisStreamConsumer: decodes stream entries into typed envelopes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic

from ..envelope import PayloadT
from ..exceptions import MessagingSerializationError
from ..serialization import EnvelopeSerializer
from .propagation import extract_trace_context
from .publisher import DATA_FIELD

if TYPE_CHECKING:
    import asyncio

    from ...structured_logging import ServiceLogger
    from ..envelope import Envelope
    from ..ports import EnvelopeHandler
    from .client import RedisStreamClient

_log = logging.getLogger("tracing_lib.messaging.redis")


class RedisStreamConsumer(Generic[PayloadT]):
    """Consumes one stream as a member of a consumer group.

    Each entry is decoded, its trace context restored and the handler called
    with ``(envelope, context)``. Decode and handler errors are logged by the
    client loop and the entry is acknowledged anyway.
    """

    def __init__(
        self,
        client: RedisStreamClient,
        stream_key: str,
        consumer_group: str,
        consumer_name: str,
        *,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._stream_key = stream_key
        self._consumer_group = consumer_group
        self._consumer_name = consumer_name
        self._serializer = serializer or EnvelopeSerializer()
        self._log = logger or _log

    async def consume(
        self,
        handler: EnvelopeHandler[PayloadT],
        *,
        stop: asyncio.Event | None = None,
    ) -> None:
        """Run the consume loop until *stop* is set or the connection fails."""

        async def on_entry(fields: dict[str, str]) -> None:
            envelope = self.decode(fields)
            self._log.info(
                "consumed redis event", extra={"retries": envelope.retries}
            )
            await handler(envelope, extract_trace_context(envelope))

        await self._client.consume_stream(
            self._stream_key,
            self._consumer_group,
            self._consumer_name,
            on_entry,
            stop=stop,
        )

    def decode(self, fields: dict[str, str]) -> Envelope[PayloadT]:
        data = fields.get(DATA_FIELD)
        if data is None:
            raise MessagingSerializationError(
                f"failed to decode redis event: missing {DATA_FIELD!r} field"
            )
        return self._serializer.deserialize(data)
