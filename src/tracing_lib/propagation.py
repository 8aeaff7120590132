"""Trace-context propagation over arbitrary transport headers.

``HeaderCarrier`` adapts a message's metadata mapping to the get/set/keys
contract; ``inject`` and ``extract`` bridge it to the OpenTelemetry text-map
propagator (W3C ``traceparent`` / ``tracestate`` / ``baggage``).

Usage:
    ```python
    carrier = HeaderCarrier()
    inject(None, carrier)           # current context -> headers
    ...
    ctx = extract(None, HeaderCarrier(received_headers))
    with tracer.start_as_current_span("handle", context=ctx):
        ...
    ```
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from opentelemetry import propagate
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import Getter, Setter, TextMapPropagator


class HeaderCarrier:
    """Key/value view over one message's headers.

    When constructed over an existing mapping, writes go straight to it.
    """

    def __init__(self, headers: MutableMapping[str, Any] | None = None) -> None:
        self._headers: MutableMapping[str, Any] = headers if headers is not None else {}

    def get(self, key: str) -> str:
        """Return the value for *key*, or ``""`` when absent or not textual."""
        value = self._headers.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return ""

    def set(self, key: str, value: str) -> None:
        self._headers[key] = value

    def keys(self) -> list[str]:
        return list(self._headers.keys())

    def as_dict(self) -> dict[str, Any]:
        return dict(self._headers)

    def __repr__(self) -> str:
        return f"HeaderCarrier({dict(self._headers)!r})"


class _CarrierGetter(Getter[HeaderCarrier]):
    def get(self, carrier: HeaderCarrier, key: str) -> list[str] | None:
        value = carrier.get(key)
        return [value] if value else None

    def keys(self, carrier: HeaderCarrier) -> list[str]:
        return carrier.keys()


class _CarrierSetter(Setter[HeaderCarrier]):
    def set(self, carrier: HeaderCarrier, key: str, value: str) -> None:
        carrier.set(key, value)


_GETTER = _CarrierGetter()
_SETTER = _CarrierSetter()


def inject(
    context: Context | None,
    carrier: HeaderCarrier,
    *,
    propagator: TextMapPropagator | None = None,
) -> None:
    """Write the trace context of *context* (current when None) into *carrier*.

    A context without an active span leaves the carrier untouched.
    """
    (propagator or propagate.get_global_textmap()).inject(
        carrier, context=context, setter=_SETTER
    )


def extract(
    context: Context | None,
    carrier: HeaderCarrier,
    *,
    propagator: TextMapPropagator | None = None,
) -> Context:
    """Return *context* (an empty one when None) with the remote parent from *carrier*.

    Missing or malformed headers yield the base context unchanged, so the next
    span starts a new trace.
    """
    base = context if context is not None else Context()
    return (propagator or propagate.get_global_textmap()).extract(
        carrier, context=base, getter=_GETTER
    )
