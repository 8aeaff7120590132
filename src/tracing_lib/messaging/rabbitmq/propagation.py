"""Trace-context helpers for AMQP messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...propagation import HeaderCarrier, extract, inject

if TYPE_CHECKING:
    from aio_pika import Message
    from aio_pika.abc import AbstractIncomingMessage
    from opentelemetry.context import Context
    from opentelemetry.propagators.textmap import TextMapPropagator


def wrap_publish_message(
    message: Message,
    context: Context | None = None,
    *,
    propagator: TextMapPropagator | None = None,
) -> Message:
    """Inject the trace context into *message*'s headers, keeping existing ones."""
    headers = dict(message.headers or {})
    inject(context, HeaderCarrier(headers), propagator=propagator)
    message.headers = headers
    return message


def extract_trace_context_from_delivery(
    delivery: AbstractIncomingMessage,
    context: Context | None = None,
    *,
    propagator: TextMapPropagator | None = None,
) -> Context:
    """Restore the producer's trace context from a delivery's headers."""
    return extract(
        context, HeaderCarrier(dict(delivery.headers or {})), propagator=propagator
    )
