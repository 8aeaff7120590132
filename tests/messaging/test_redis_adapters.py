"""Tests for the Redis stream publisher, consumer and trace helpers."""

from __future__ import annotations

import base64
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from opentelemetry import trace
from pydantic import BaseModel

from tracing_lib.messaging.envelope import Envelope, EventHeader
from tracing_lib.messaging.exceptions import (
    MessagingSerializationError,
    StreamNotFoundError,
)
from tracing_lib.messaging.redis import (
    RedisStreamConsumer,
    RedisStreamPublisher,
    extract_trace_context,
    wrap_publish_message,
)
from tracing_lib.messaging.serialization import EnvelopeSerializer


class Greeting(BaseModel):
    message: str


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.publish_to_stream = AsyncMock(return_value="1-0")
    client.consume_stream = AsyncMock()
    return client


def feed(*entries: dict[str, str]):
    """consume_stream replacement that hands *entries* to the entry callback."""

    async def consume_stream(stream_key, group, name, fn, *, stop=None):
        for fields in entries:
            await fn(fields)

    return consume_stream


class TestPropagation:
    def test_wrap_sets_traceparent_of_current_span(self, tracer) -> None:
        with tracer.start_as_current_span("producer") as span:
            wrapped = wrap_publish_message(Envelope(payload="x"))
            trace_hex = trace.format_trace_id(span.get_span_context().trace_id)

        assert trace_hex in wrapped.header.traceparent

    def test_wrap_without_span_leaves_header_empty(self) -> None:
        wrapped = wrap_publish_message(Envelope(payload="x"))
        assert wrapped.headers() == {}

    def test_wrap_keeps_key_payload_and_retries(self, tracer) -> None:
        envelope = Envelope(payload="x", retries=2, header=EventHeader(key="k"))
        with tracer.start_as_current_span("producer"):
            wrapped = wrap_publish_message(envelope)
        assert (wrapped.header.key, wrapped.payload, wrapped.retries) == ("k", "x", 2)

    def test_extract_round_trip(self, tracer) -> None:
        with tracer.start_as_current_span("producer") as span:
            wrapped = wrap_publish_message(Envelope(payload="x"))
            sent = span.get_span_context()

        restored = trace.get_current_span(extract_trace_context(wrapped))
        assert restored.get_span_context().trace_id == sent.trace_id
        assert restored.get_span_context().span_id == sent.span_id


@pytest.mark.asyncio
class TestPublisher:
    async def test_publishes_base64_data_field(self, mock_client) -> None:
        publisher: RedisStreamPublisher[Greeting] = RedisStreamPublisher(
            mock_client, "greetings"
        )

        entry_id = await publisher.publish(
            Envelope(payload=Greeting(message="hello"), retries=1)
        )

        assert entry_id == "1-0"
        stream, fields = mock_client.publish_to_stream.await_args.args
        assert stream == "greetings"
        decoded = json.loads(base64.b64decode(fields["data"]))
        assert decoded["payload"] == {"message": "hello"}
        assert decoded["retries"] == 1

    async def test_missing_stream_propagates(self, mock_client) -> None:
        mock_client.publish_to_stream.side_effect = StreamNotFoundError("greetings")
        publisher: RedisStreamPublisher[str] = RedisStreamPublisher(
            mock_client, "greetings"
        )
        with pytest.raises(StreamNotFoundError):
            await publisher.publish(Envelope(payload="x"))


@pytest.mark.asyncio
class TestConsumer:
    async def test_handler_gets_typed_envelope_and_remote_context(
        self, mock_client, tracer
    ) -> None:
        serializer: EnvelopeSerializer[Greeting] = EnvelopeSerializer(Greeting)
        with tracer.start_as_current_span("producer") as span:
            envelope = wrap_publish_message(Envelope(payload=Greeting(message="hi")))
            trace_id = span.get_span_context().trace_id
        mock_client.consume_stream.side_effect = feed(
            {"data": serializer.serialize(envelope)}
        )
        consumer = RedisStreamConsumer(
            mock_client, "greetings", "group", "worker-1", serializer=serializer
        )
        handler = AsyncMock()

        await consumer.consume(handler)

        received, context = handler.await_args.args
        assert isinstance(received.payload, Greeting)
        assert received.payload.message == "hi"
        assert trace.get_current_span(context).get_span_context().trace_id == trace_id

    async def test_passes_stream_identity_and_stop(self, mock_client) -> None:
        consumer: RedisStreamConsumer[str] = RedisStreamConsumer(
            mock_client, "greetings", "group", "worker-1"
        )
        stop = MagicMock()

        await consumer.consume(AsyncMock(), stop=stop)

        args = mock_client.consume_stream.await_args
        assert args.args[:3] == ("greetings", "group", "worker-1")
        assert args.kwargs["stop"] is stop

    async def test_entry_without_data_field_fails_decode(self, mock_client) -> None:
        mock_client.consume_stream.side_effect = feed({"other": "x"})
        consumer: RedisStreamConsumer[str] = RedisStreamConsumer(
            mock_client, "greetings", "group", "worker-1"
        )
        with pytest.raises(MessagingSerializationError, match="missing 'data'"):
            await consumer.consume(AsyncMock())
