"""Tests for HeaderCarrier and inject/extract."""

from __future__ import annotations

from opentelemetry import baggage, trace
from opentelemetry import context as otel_context

from tracing_lib.propagation import HeaderCarrier, extract, inject


class TestHeaderCarrier:
    def test_get_missing_key_is_empty(self) -> None:
        assert HeaderCarrier().get("traceparent") == ""

    def test_set_overwrites(self) -> None:
        carrier = HeaderCarrier()
        carrier.set("k", "a")
        carrier.set("k", "b")
        assert carrier.get("k") == "b"

    def test_keys_enumerates_exactly_what_was_set(self) -> None:
        carrier = HeaderCarrier()
        carrier.set("a", "1")
        carrier.set("b", "2")
        assert sorted(carrier.keys()) == ["a", "b"]

    def test_bytes_are_decoded(self) -> None:
        carrier = HeaderCarrier({"traceparent": b"00-abc"})
        assert carrier.get("traceparent") == "00-abc"

    def test_non_string_values_read_as_empty(self) -> None:
        carrier = HeaderCarrier({"x-count": 3})
        assert carrier.get("x-count") == ""

    def test_writes_go_to_wrapped_mapping(self) -> None:
        headers: dict[str, object] = {"existing": "1"}
        HeaderCarrier(headers).set("traceparent", "tp")
        assert headers == {"existing": "1", "traceparent": "tp"}

    def test_as_dict_is_a_copy(self) -> None:
        headers = {"a": "1"}
        copied = HeaderCarrier(headers).as_dict()
        copied["b"] = "2"
        assert headers == {"a": "1"}


class TestInjectExtract:
    def test_round_trip_restores_remote_parent(self, tracer, propagator) -> None:
        carrier = HeaderCarrier()
        with tracer.start_as_current_span("producer") as span:
            inject(None, carrier, propagator=propagator)
            sent = span.get_span_context()

        ctx = extract(None, carrier, propagator=propagator)
        restored = trace.get_current_span(ctx).get_span_context()

        assert restored.trace_id == sent.trace_id
        assert restored.span_id == sent.span_id
        assert restored.is_remote

    def test_child_span_joins_the_remote_trace(self, tracer, propagator) -> None:
        carrier = HeaderCarrier()
        with tracer.start_as_current_span("producer") as span:
            inject(None, carrier, propagator=propagator)
            trace_id = span.get_span_context().trace_id

        ctx = extract(None, carrier, propagator=propagator)
        with tracer.start_as_current_span("consumer", context=ctx) as child:
            assert child.get_span_context().trace_id == trace_id
            assert child.parent is not None

    def test_inject_without_span_is_a_no_op(self, propagator) -> None:
        carrier = HeaderCarrier()
        inject(None, carrier, propagator=propagator)
        assert carrier.keys() == []

    def test_extract_malformed_headers_yields_no_parent(self, propagator) -> None:
        carrier = HeaderCarrier({"traceparent": "not-a-traceparent"})
        ctx = extract(None, carrier, propagator=propagator)
        assert not trace.get_current_span(ctx).get_span_context().is_valid

    def test_extract_keeps_base_context_values(self, propagator) -> None:
        key = otel_context.create_key("tenant")
        base = otel_context.set_value(key, "acme")
        ctx = extract(base, HeaderCarrier(), propagator=propagator)
        assert otel_context.get_value(key, ctx) == "acme"

    def test_baggage_travels_with_the_context(self, propagator) -> None:
        carrier = HeaderCarrier()
        inject(baggage.set_baggage("user", "alice"), carrier, propagator=propagator)
        assert "baggage" in carrier.keys()

        ctx = extract(None, carrier, propagator=propagator)
        assert baggage.get_baggage("user", ctx) == "alice"

    def test_defaults_to_global_propagator(self, tracer) -> None:
        carrier = HeaderCarrier()
        with tracer.start_as_current_span("producer"):
            inject(None, carrier)
        assert carrier.get("traceparent").startswith("00-")
