"""InMemoryPublisher: IEnvelopePublisher with assertion helpers for tests."""

from __future__ import annotations

from typing import Any, Generic

from ..envelope import Envelope, PayloadT
from ..serialization import EnvelopeSerializer
from .bus import InMemoryMessageBus


class InMemoryPublisher(Generic[PayloadT]):
    """Publishes encoded envelopes onto an in-memory stream.

    Entries use the same ``{"data": <base64 json>}`` shape as the Redis
    publisher, so consumers exercise the real codec.
    """

    def __init__(
        self,
        stream_key: str,
        bus: InMemoryMessageBus | None = None,
        *,
        serializer: EnvelopeSerializer[PayloadT] | None = None,
    ) -> None:
        """If bus is None, a new bus is created (no consumer connection)."""
        self._stream_key = stream_key
        self._bus = bus or InMemoryMessageBus()
        self._serializer = serializer or EnvelopeSerializer()

    async def publish(self, envelope: Envelope[PayloadT]) -> str:
        fields = {"data": self._serializer.serialize(envelope)}
        return self._bus.append(self._stream_key, fields, envelope)

    def get_published(self) -> list[Envelope[Any]]:
        """Return the envelopes published to this publisher's stream."""
        return [
            envelope
            for stream, envelope in self._bus.get_published()
            if stream == self._stream_key
        ]

    def assert_published(self, count: int = 1, *, retries: int | None = None) -> None:
        """Assert that exactly *count* envelopes (optionally with *retries*) were published."""
        published = self.get_published()
        if retries is not None:
            published = [e for e in published if e.retries == retries]
        assert len(published) == count, (
            f"Expected {count} envelope(s)"
            f"{'' if retries is None else f' with retries={retries}'} on "
            f"{self._stream_key!r}, got {len(published)}. Published retries: "
            f"{[e.retries for e in self.get_published()]}"
        )

    @property
    def bus(self) -> InMemoryMessageBus:
        """Return the bus (e.g. to pass to InMemoryConsumer)."""
        return self._bus
