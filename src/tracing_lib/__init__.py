"""tracing-lib: OpenTelemetry setup, trace propagation and traced messaging."""

from __future__ import annotations

from .exceptions import ProviderError, ShutdownError, TracingLibError
from .http_client import TracingTransport, new_http_client
from .propagation import HeaderCarrier, extract, inject
from .providers import (
    DatadogLogInjectionFilter,
    OTelLogInjectionFilter,
    Provider,
    ProviderConfig,
    new_datadog_provider,
    new_otlp_provider,
)
from .structured_logging import JsonFormatter, ServiceLogger, init_logger
from .tracing import (
    TracingConfig,
    TracingRuntime,
    get_service_name,
    new_propagator,
    setup_otel_sdk,
    tracer_for,
)

__all__ = [
    "DatadogLogInjectionFilter",
    "HeaderCarrier",
    "JsonFormatter",
    "OTelLogInjectionFilter",
    "Provider",
    "ProviderConfig",
    "ProviderError",
    "ServiceLogger",
    "ShutdownError",
    "TracingConfig",
    "TracingLibError",
    "TracingRuntime",
    "TracingTransport",
    "extract",
    "get_service_name",
    "init_logger",
    "inject",
    "new_datadog_provider",
    "new_http_client",
    "new_otlp_provider",
    "new_propagator",
    "setup_otel_sdk",
    "tracer_for",
]
