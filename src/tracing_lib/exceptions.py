"""Exceptions for tracing-lib."""

from __future__ import annotations


class TracingLibError(Exception):
    """Root exception for the entire tracing-lib toolkit."""


class ProviderError(TracingLibError):
    """Raised when a tracer provider cannot be constructed."""


class ShutdownError(TracingLibError):
    """One or more tracing cleanup functions failed during shutdown.

    Every registered cleanup still runs; the failures are collected here.
    """

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        super().__init__(
            f"Tracing shutdown incomplete: {len(errors)} cleanup(s) failed. "
            f"First error: {errors[0] if errors else 'unknown'}"
        )
