"""Tests for Envelope."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from tracing_lib.messaging.envelope import Envelope, EventHeader


class Greeting(BaseModel):
    message: str


def test_envelope_defaults() -> None:
    e = Envelope(payload=Greeting(message="hello"))
    assert e.retries == 0
    assert e.header == EventHeader()
    assert e.header.key == ""
    assert e.payload.message == "hello"


def test_envelope_frozen() -> None:
    e = Envelope(payload="x")
    with pytest.raises((ValueError, ValidationError), match=r".+"):
        e.retries = 3  # type: ignore[misc]


def test_retries_never_negative() -> None:
    with pytest.raises(ValidationError, match=r"retries|greater"):
        Envelope(payload="x", retries=-1)


def test_next_attempt_increments_by_one_and_keeps_payload() -> None:
    e = Envelope(payload="hello", retries=4, header=EventHeader(key="k"))
    nxt = e.next_attempt()
    assert nxt.retries == 5
    assert nxt.payload == "hello"
    assert nxt.header == e.header
    assert e.retries == 4


def test_headers_only_returns_set_fields() -> None:
    assert Envelope(payload="x").headers() == {}
    e = Envelope(payload="x", header=EventHeader(traceparent="00-a-b-01"))
    assert e.headers() == {"traceparent": "00-a-b-01"}


def test_with_headers_sets_trace_fields() -> None:
    e = Envelope(payload="x", header=EventHeader(key="order-1"))
    updated = e.with_headers({"traceparent": "tp", "tracestate": "ts", "other": "o"})
    assert updated.header == EventHeader(key="order-1", traceparent="tp", tracestate="ts")
    assert e.header.traceparent == ""


def test_json_field_names() -> None:
    e = Envelope(payload={"id": 1}, header=EventHeader(traceparent="tp"))
    assert e.model_dump() == {
        "header": {"key": "", "traceparent": "tp", "tracestate": ""},
        "payload": {"id": 1},
        "retries": 0,
    }
