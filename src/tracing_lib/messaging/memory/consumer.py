"""InMemoryConsumer: drains an in-memory stream through a handler."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Generic

from ...propagation import HeaderCarrier, extract
from ..envelope import PayloadT
from ..exceptions import MessagingSerializationError
from ..serialization import EnvelopeSerializer

if TYPE_CHECKING:
    from ...structured_logging import ServiceLogger
    from ..ports import EnvelopeHandler
    from .bus import InMemoryMessageBus

_log = logging.getLogger("tracing_lib.messaging.memory")


class InMemoryConsumer(Generic[PayloadT]):
    """Reads entries from a shared bus one at a time.

    Use the same InMemoryMessageBus as InMemoryPublisher. Each entry is removed
    from the stream (acknowledged) whatever the handler outcome, matching the
    Redis and RabbitMQ consumers.
    """

    def __init__(
        self,
        stream_key: str,
        bus: InMemoryMessageBus,
        *,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        self._stream_key = stream_key
        self._bus = bus
        self._serializer = serializer or EnvelopeSerializer()
        self._log = logger or _log

    async def consume(
        self,
        handler: EnvelopeHandler[PayloadT],
    ) -> int:
        """Process every pending entry; return how many were taken off the stream."""
        processed = 0
        while (entry := self._bus.pop(self._stream_key)) is not None:
            entry_id, fields = entry
            processed += 1
            try:
                envelope = self._serializer.deserialize(fields.get("data", ""))
            except MessagingSerializationError:
                self._log.exception(
                    "failed to decode entry", extra={"entry_id": entry_id}
                )
                continue
            context = extract(None, HeaderCarrier(dict(envelope.headers())))
            try:
                await handler(envelope, context)
            except Exception:  # noqa: BLE001
                self._log.exception(
                    "error handling entry", extra={"entry_id": entry_id}
                )
        return processed
