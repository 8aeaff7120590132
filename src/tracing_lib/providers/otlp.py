"""OTLP provider: batches spans to an OpenTelemetry collector over gRPC."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ..exceptions import ProviderError
from .base import Provider

if TYPE_CHECKING:
    from opentelemetry.sdk.trace.export import SpanExporter

    from .base import ProviderConfig

logger = logging.getLogger("tracing_lib.providers")

DEFAULT_OTLP_ENDPOINT = "localhost:4317"


def new_otlp_provider(
    config: ProviderConfig,
    *,
    endpoint: str = DEFAULT_OTLP_ENDPOINT,
    insecure: bool = True,
    exporter: SpanExporter | None = None,
) -> Provider:
    """Build an SDK tracer provider exporting to an OTLP collector.

    Args:
        config: Service identity stamped on the resource.
        endpoint: Collector gRPC address.
        insecure: Disable TLS towards the collector.
        exporter: Use this exporter instead of building an OTLP one.

    Raises:
        ProviderError: If the exporter cannot be created.
    """
    if exporter is None:
        try:
            exporter = OTLPSpanExporter(endpoint=endpoint, insecure=insecure)
        except (ValueError, OSError) as e:
            raise ProviderError(f"failed to create OTLP exporter: {e}") from e

    resource = Resource.create(
        {
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
        }
    )
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info(
        "OTLP tracer provider ready (service=%s, endpoint=%s)",
        config.service_name,
        endpoint,
    )
    return Provider(tracer_provider=tracer_provider, shutdown=tracer_provider.shutdown)


class OTelLogInjectionFilter(logging.Filter):
    """Adds ``traceID`` and ``spanID`` of the current span to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            record.traceID = trace.format_trace_id(span_context.trace_id)
            record.spanID = trace.format_span_id(span_context.span_id)
        return True
