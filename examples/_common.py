"""Setup shared by the example services.

Environment:
    TRACING_BACKEND: ``otlp`` (default) or ``datadog``.
    OTLP_ENDPOINT: Collector address for the OTLP backend.
"""

from __future__ import annotations

import os

from pydantic import BaseModel

from tracing_lib import (
    DatadogLogInjectionFilter,
    OTelLogInjectionFilter,
    ProviderConfig,
    ServiceLogger,
    TracingConfig,
    TracingRuntime,
    init_logger,
    new_datadog_provider,
    new_otlp_provider,
    setup_otel_sdk,
)
from tracing_lib.providers.otlp import DEFAULT_OTLP_ENDPOINT

SERVICE_VERSION = "v1.0.0"
BACKEND = os.environ.get("TRACING_BACKEND", "otlp")


class PublishMessage(BaseModel):
    body: str


def service_logger(service_name: str) -> ServiceLogger:
    log_filter = (
        DatadogLogInjectionFilter() if BACKEND == "datadog" else OTelLogInjectionFilter()
    )
    return init_logger(service_name, SERVICE_VERSION, filters=[log_filter])


def setup_tracing(service_name: str, logger: ServiceLogger) -> TracingRuntime:
    config = ProviderConfig(service_name, SERVICE_VERSION)
    if BACKEND == "datadog":
        provider = new_datadog_provider(config, logger=logger)
    else:
        provider = new_otlp_provider(
            config, endpoint=os.environ.get("OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT)
        )
    return setup_otel_sdk(TracingConfig(provider=provider, service_name=service_name))
