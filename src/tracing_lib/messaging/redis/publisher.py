"""RedisStreamPublisher: publishes envelopes as base64 stream entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic

from ..envelope import PayloadT
from ..serialization import EnvelopeSerializer

if TYPE_CHECKING:
    from ..envelope import Envelope
    from .client import RedisStreamClient

DATA_FIELD = "data"


class RedisStreamPublisher(Generic[PayloadT]):
    """Publishes ``{"data": <base64 json>}`` entries to one stream.

    The envelope header is published as-is; call
    :func:`~tracing_lib.messaging.redis.propagation.wrap_publish_message`
    first to attach the current trace context.
    """

    def __init__(
        self,
        client: RedisStreamClient,
        stream_key: str,
        *,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
    ) -> None:
        self._client = client
        self._stream_key = stream_key
        self._serializer = serializer or EnvelopeSerializer()

    @property
    def stream_key(self) -> str:
        return self._stream_key

    async def publish(self, envelope: Envelope[PayloadT]) -> str:
        """Publish *envelope*; return the stream entry id.

        Raises:
            MessagingSerializationError: The envelope could not be encoded.
            StreamNotFoundError: The stream does not exist.
            PublishError: XADD failed.
        """
        data = self._serializer.serialize(envelope)
        return await self._client.publish_to_stream(
            self._stream_key, {DATA_FIELD: data}
        )
