"""Service logger: JSON log lines stamped with service name and version."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterable, MutableMapping
from datetime import datetime, timezone
from typing import IO, Any

DEFAULT_SERVICE_NAME = "unknown-service"
DEFAULT_SERVICE_VERSION = "unknown-version"

_HANDLER_MARKER = "_tracing_lib_handler"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Renders each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ServiceLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """LoggerAdapter that merges its bound fields into every record.

    Unlike the stock adapter, per-call ``extra`` is merged with (not replaced by)
    the bound fields.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> ServiceLogger:
        """Return a child adapter carrying additional fields."""
        return ServiceLogger(self.logger, {**(self.extra or {}), **fields})


def init_logger(
    service_name: str = DEFAULT_SERVICE_NAME,
    service_version: str = DEFAULT_SERVICE_VERSION,
    *,
    level: int = logging.INFO,
    stream: IO[str] | None = None,
    filters: Iterable[logging.Filter] = (),
) -> ServiceLogger:
    """Build the service logger and return it.

    The underlying ``logging.Logger`` is configured once per service name:
    later calls reuse the existing handler instead of stacking a new one.

    Args:
        service_name: Stamped as ``service`` on every record.
        service_version: Stamped as ``version`` on every record.
        level: Logger level.
        stream: Output stream for the JSON handler (default: stdout).
        filters: Extra filters attached to the handler, e.g. trace-id injection.
    """
    logger = logging.getLogger(f"tracing_lib.service.{service_name}")
    handler = next(
        (h for h in logger.handlers if getattr(h, _HANDLER_MARKER, False)), None
    )
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(JsonFormatter())
        setattr(handler, _HANDLER_MARKER, True)
        logger.addHandler(handler)
        logger.propagate = False
    for log_filter in filters:
        if log_filter not in handler.filters:
            handler.addFilter(log_filter)
    logger.setLevel(level)
    return ServiceLogger(
        logger, {"service": service_name, "version": service_version}
    )
