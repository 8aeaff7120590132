"""Tracer provider backends: OTLP collector and Datadog."""

from __future__ import annotations

from .base import Provider, ProviderConfig
from .datadog import DatadogLogInjectionFilter, new_datadog_provider
from .otlp import OTelLogInjectionFilter, new_otlp_provider

__all__ = [
    "DatadogLogInjectionFilter",
    "OTelLogInjectionFilter",
    "Provider",
    "ProviderConfig",
    "new_datadog_provider",
    "new_otlp_provider",
]
