"""OpenTelemetry SDK setup: global propagator, tracer provider and shutdown."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from opentelemetry import propagate, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from .exceptions import ShutdownError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .providers.base import Provider

logger = logging.getLogger("tracing_lib.tracing")

UNDEFINED_SERVICE_NAME = "undefined-service-name"


@dataclass(frozen=True)
class TracingConfig:
    """What ``setup_otel_sdk`` installs."""

    provider: Provider
    service_name: str = ""


@dataclass
class TracingRuntime:
    """Handle returned by ``setup_otel_sdk``; pass it to whatever needs a tracer."""

    tracer: trace.Tracer
    service_name: str
    _cleanups: list[Callable[[], object]] = field(default_factory=list, repr=False)

    def shutdown(self) -> None:
        """Run every registered cleanup once.

        Raises:
            ShutdownError: If any cleanup failed; the others still ran.
        """
        cleanups, self._cleanups = self._cleanups, []
        errors: list[Exception] = []
        for cleanup in cleanups:
            try:
                cleanup()
            except Exception as e:  # noqa: BLE001
                errors.append(e)
        if errors:
            raise ShutdownError(errors)
        logger.info("Tracing shut down (service=%s)", self.service_name)


def new_propagator() -> CompositePropagator:
    """W3C trace context plus baggage."""
    return CompositePropagator(
        [
            TraceContextTextMapPropagator(),
            W3CBaggagePropagator(),
        ]
    )


def setup_otel_sdk(config: TracingConfig) -> TracingRuntime:
    """Install the propagator and tracer provider globally.

    Returns:
        The runtime holding the service tracer and the shutdown hook.
    """
    propagate.set_global_textmap(new_propagator())
    trace.set_tracer_provider(config.provider.tracer_provider)

    service_name = config.service_name or UNDEFINED_SERVICE_NAME
    tracer = trace.get_tracer(service_name)
    logger.info("Tracing configured (service=%s)", service_name)
    return TracingRuntime(
        tracer=tracer,
        service_name=service_name,
        _cleanups=[config.provider.shutdown],
    )


def get_service_name(runtime: TracingRuntime | None) -> str:
    if runtime is None or not runtime.service_name:
        return UNDEFINED_SERVICE_NAME
    return runtime.service_name


def tracer_for(runtime: TracingRuntime | None) -> trace.Tracer:
    """Return the runtime's tracer, or a tracer named after the service."""
    if runtime is not None:
        return runtime.tracer
    return trace.get_tracer(get_service_name(runtime))
