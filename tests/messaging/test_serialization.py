"""Tests for EnvelopeSerializer."""

from __future__ import annotations

import base64
import json
from typing import Any

import pytest
from pydantic import BaseModel

from tracing_lib.messaging.envelope import Envelope, EventHeader
from tracing_lib.messaging.exceptions import MessagingSerializationError
from tracing_lib.messaging.serialization import EnvelopeSerializer


class Order(BaseModel):
    order_id: str
    quantity: int


def test_wire_form_is_base64_json() -> None:
    serializer: EnvelopeSerializer[Order] = EnvelopeSerializer(Order)
    envelope = Envelope(
        payload=Order(order_id="1", quantity=2),
        header=EventHeader(traceparent="tp"),
        retries=3,
    )

    decoded = json.loads(base64.b64decode(serializer.serialize(envelope)))

    assert decoded == {
        "header": {"key": "", "traceparent": "tp", "tracestate": ""},
        "payload": {"order_id": "1", "quantity": 2},
        "retries": 3,
    }


def test_decode_yields_typed_payload() -> None:
    serializer: EnvelopeSerializer[Order] = EnvelopeSerializer(Order)
    data = serializer.serialize(Envelope(payload=Order(order_id="7", quantity=1)))

    envelope = serializer.deserialize(data.encode("ascii"))

    assert isinstance(envelope.payload, Order)
    assert envelope.payload.order_id == "7"
    assert envelope.retries == 0


def test_decode_accepts_foreign_json() -> None:
    raw = b'{"header":{"key":"","traceparent":"","tracestate":""},"payload":"hello","retries":2}'
    envelope = EnvelopeSerializer(str).deserialize(base64.b64encode(raw))
    assert envelope.payload == "hello"
    assert envelope.retries == 2


def test_invalid_base64() -> None:
    with pytest.raises(MessagingSerializationError, match="failed to decode base64"):
        EnvelopeSerializer(str).deserialize("***not base64***")


def test_invalid_json() -> None:
    data = base64.b64encode(b"{not json")
    with pytest.raises(MessagingSerializationError, match="failed to decode event"):
        EnvelopeSerializer(str).deserialize(data)


def test_payload_type_mismatch() -> None:
    data = EnvelopeSerializer(str).serialize(Envelope(payload="hello"))
    with pytest.raises(MessagingSerializationError, match="failed to decode event"):
        EnvelopeSerializer(Order).deserialize(data)


def test_unencodable_payload() -> None:
    serializer: EnvelopeSerializer[Any] = EnvelopeSerializer()
    with pytest.raises(MessagingSerializationError, match="failed to marshal event"):
        serializer.serialize(Envelope(payload=object()))


def test_payload_type_property() -> None:
    assert EnvelopeSerializer(Order).payload_type is Order
