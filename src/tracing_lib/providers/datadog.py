"""Datadog provider (optional extra: tracing-lib[datadog]).

Spans created through the OpenTelemetry API are handed to ``ddtrace``, which
ships them to the local Datadog agent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace

from ..structured_logging import init_logger
from .base import Provider

if TYPE_CHECKING:
    from ..structured_logging import ServiceLogger
    from .base import ProviderConfig

DDTRACE_LOGGER_NAME = "ddtrace"


class _ForwardingHandler(logging.Handler):
    """Re-emits ddtrace's own log records through the service logger."""

    def __init__(self, target: ServiceLogger | logging.Logger) -> None:
        super().__init__()
        self.target = target

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.target.log(
                record.levelno,
                record.getMessage(),
                extra={"source": record.name},
            )
        except Exception:  # noqa: BLE001
            self.handleError(record)


def _route_ddtrace_logs(target: ServiceLogger | logging.Logger) -> None:
    dd_logger = logging.getLogger(DDTRACE_LOGGER_NAME)
    for handler in list(dd_logger.handlers):
        if isinstance(handler, _ForwardingHandler):
            dd_logger.removeHandler(handler)
    dd_logger.addHandler(_ForwardingHandler(target))
    dd_logger.propagate = False


def new_datadog_provider(
    config: ProviderConfig,
    *,
    logger: ServiceLogger | logging.Logger | None = None,
) -> Provider:
    """Build a ddtrace-backed OpenTelemetry tracer provider.

    Args:
        config: Service identity reported to Datadog.
        logger: Receives ddtrace's internal log output. When None, a service
            logger is built from *config*.
    """
    try:
        import ddtrace
        from ddtrace.opentelemetry import TracerProvider as DDTracerProvider
        from ddtrace.trace import tracer as dd_tracer
    except ImportError as e:
        raise ImportError(
            "ddtrace is required for the Datadog provider. "
            "Install with: pip install 'tracing-lib[datadog]'"
        ) from e

    ddtrace.config.service = config.service_name
    ddtrace.config.version = config.service_version

    if logger is None:
        logger = init_logger(config.service_name, config.service_version)
    _route_ddtrace_logs(logger)

    tracer_provider = DDTracerProvider()
    logger.info("Datadog tracer provider ready (service=%s)", config.service_name)
    return Provider(tracer_provider=tracer_provider, shutdown=dd_tracer.shutdown)


class DatadogLogInjectionFilter(logging.Filter):
    """Adds ``dd.trace_id`` and ``dd.span_id`` of the current span to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            setattr(record, "dd.trace_id", trace.format_trace_id(span_context.trace_id))
            setattr(record, "dd.span_id", trace.format_span_id(span_context.span_id))
        return True
