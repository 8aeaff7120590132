"""Traced ``httpx`` client: one CLIENT span per request, context in the headers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from .propagation import HeaderCarrier, inject

if TYPE_CHECKING:
    from opentelemetry.propagators.textmap import TextMapPropagator

TRACER_NAME = "tracing_lib.http_client"


class TracingTransport(httpx.AsyncBaseTransport):
    """Wraps another async transport and traces every request it sends."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        *,
        tracer: trace.Tracer | None = None,
        propagator: TextMapPropagator | None = None,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._tracer = tracer or trace.get_tracer(TRACER_NAME)
        self._propagator = propagator

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        with self._tracer.start_as_current_span(
            f"HTTP {request.method}",
            kind=SpanKind.CLIENT,
            attributes={
                "http.method": request.method,
                "http.url": str(request.url),
            },
        ) as span:
            inject(None, HeaderCarrier(request.headers), propagator=self._propagator)
            response = await self._transport.handle_async_request(request)
            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 400:
                span.set_status(Status(StatusCode.ERROR))
            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def new_http_client(
    *,
    tracer: trace.Tracer | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Return an ``httpx.AsyncClient`` whose requests are traced.

    Remaining keyword arguments go to ``httpx.AsyncClient``.
    """
    return httpx.AsyncClient(
        transport=TracingTransport(transport, tracer=tracer), **kwargs
    )
