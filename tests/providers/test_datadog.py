"""Tests for the Datadog provider with a stand-in ddtrace module."""

from __future__ import annotations

import logging
import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from tracing_lib.providers import DatadogLogInjectionFilter, ProviderConfig
from tracing_lib.providers.datadog import (
    DDTRACE_LOGGER_NAME,
    _ForwardingHandler,
    new_datadog_provider,
)


@pytest.fixture
def fake_ddtrace():
    ddtrace = types.ModuleType("ddtrace")
    ddtrace.config = types.SimpleNamespace(service=None, version=None)
    dd_otel = types.ModuleType("ddtrace.opentelemetry")
    dd_otel.TracerProvider = MagicMock(name="TracerProvider")
    dd_trace = types.ModuleType("ddtrace.trace")
    dd_trace.tracer = MagicMock(name="tracer")
    modules = {
        "ddtrace": ddtrace,
        "ddtrace.opentelemetry": dd_otel,
        "ddtrace.trace": dd_trace,
    }
    with patch.dict(sys.modules, modules):
        yield ddtrace, dd_otel, dd_trace


@pytest.fixture(autouse=True)
def _restore_ddtrace_logger():
    dd_logger = logging.getLogger(DDTRACE_LOGGER_NAME)
    handlers, propagate = list(dd_logger.handlers), dd_logger.propagate
    yield
    dd_logger.handlers = handlers
    dd_logger.propagate = propagate


def test_configures_service_identity(fake_ddtrace) -> None:
    ddtrace, dd_otel, dd_trace = fake_ddtrace

    provider = new_datadog_provider(
        ProviderConfig("server", "v1.0.0"), logger=MagicMock()
    )

    assert ddtrace.config.service == "server"
    assert ddtrace.config.version == "v1.0.0"
    assert provider.tracer_provider is dd_otel.TracerProvider.return_value
    provider.shutdown()
    dd_trace.tracer.shutdown.assert_called_once()


def test_ddtrace_logs_are_forwarded_once(fake_ddtrace) -> None:
    target = MagicMock()
    new_datadog_provider(ProviderConfig("server"), logger=target)
    new_datadog_provider(ProviderConfig("server"), logger=target)
    target.reset_mock()

    logging.getLogger("ddtrace.internal.writer").warning("agent unreachable")

    target.log.assert_called_once_with(
        logging.WARNING,
        "agent unreachable",
        extra={"source": "ddtrace.internal.writer"},
    )
    dd_logger = logging.getLogger(DDTRACE_LOGGER_NAME)
    assert sum(isinstance(h, _ForwardingHandler) for h in dd_logger.handlers) == 1


def test_default_logger_built_from_config(fake_ddtrace) -> None:
    with patch("tracing_lib.providers.datadog.init_logger") as init_logger:
        new_datadog_provider(ProviderConfig("server", "v2"))
    init_logger.assert_called_once_with("server", "v2")


def test_missing_ddtrace_explains_the_extra() -> None:
    with (
        patch.dict(sys.modules, {"ddtrace": None}),
        pytest.raises(ImportError, match=r"tracing-lib\[datadog\]"),
    ):
        new_datadog_provider(ProviderConfig("server"), logger=MagicMock())


def test_log_filter_adds_dd_ids(tracer) -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    with tracer.start_as_current_span("work") as span:
        DatadogLogInjectionFilter().filter(record)
        ctx = span.get_span_context()

    assert getattr(record, "dd.trace_id") == f"{ctx.trace_id:032x}"
    assert getattr(record, "dd.span_id") == f"{ctx.span_id:016x}"


def test_log_filter_without_span_leaves_record_alone() -> None:
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    DatadogLogInjectionFilter().filter(record)
    assert not hasattr(record, "dd.trace_id")
