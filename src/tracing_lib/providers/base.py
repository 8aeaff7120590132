"""Provider configuration shared by every tracer backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from opentelemetry.trace import TracerProvider


@dataclass(frozen=True)
class ProviderConfig:
    """Identity of the instrumented service.

    Attributes:
        service_name: Reported as ``service.name``.
        service_version: Reported as ``service.version``.
    """

    service_name: str
    service_version: str = "unknown-version"


@dataclass(frozen=True)
class Provider:
    """A tracer provider together with the function that flushes and closes it."""

    tracer_provider: TracerProvider
    shutdown: Callable[[], object]
