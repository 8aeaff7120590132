"""Starlette middleware that continues the caller's trace in a SERVER span."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware

from ..propagation import HeaderCarrier, extract

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint
    from starlette.requests import Request
    from starlette.responses import Response

TRACER_NAME = "tracing_lib.contrib.starlette"


class TracingMiddleware(BaseHTTPMiddleware):
    """Starts a SERVER span per request, parented to the incoming trace headers.

    Responses with a 5xx status and unhandled exceptions mark the span as an
    error.

    Example:
        ```python
        app = Starlette(routes=routes)
        app.add_middleware(TracingMiddleware, tracer=runtime.tracer)
        ```
    """

    def __init__(
        self,
        app: Any,
        *,
        tracer: trace.Tracer | None = None,
        span_name: str | None = None,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: Starlette application.
            tracer: Defaults to a tracer from the global provider.
            span_name: Fixed span name; defaults to ``"<METHOD> <path>"``.
        """
        super().__init__(app)
        self.tracer = tracer or trace.get_tracer(TRACER_NAME)
        self.span_name = span_name

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = extract(None, HeaderCarrier(dict(request.headers)))
        name = self.span_name or f"{request.method} {request.url.path}"
        with self.tracer.start_as_current_span(
            name,
            context=context,
            kind=SpanKind.SERVER,
            attributes={
                "http.method": request.method,
                "http.target": request.url.path,
            },
        ) as span:
            response = await call_next(request)
            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))
            return response
