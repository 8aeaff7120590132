"""Trace-context helpers for envelopes carried on Redis streams."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...propagation import HeaderCarrier, extract, inject

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.propagators.textmap import TextMapPropagator

    from ..envelope import Envelope, PayloadT


def wrap_publish_message(
    envelope: Envelope[PayloadT],
    context: Context | None = None,
    *,
    propagator: TextMapPropagator | None = None,
) -> Envelope[PayloadT]:
    """Return a copy of *envelope* carrying the trace context of *context*."""
    carrier = HeaderCarrier()
    inject(context, carrier, propagator=propagator)
    return envelope.with_headers(carrier.as_dict())


def extract_trace_context(
    envelope: Envelope[PayloadT],
    context: Context | None = None,
    *,
    propagator: TextMapPropagator | None = None,
) -> Context:
    """Restore the producer's trace context from the envelope header."""
    return extract(
        context, HeaderCarrier(dict(envelope.headers())), propagator=propagator
    )
