"""RetryProcessor: run a handler; on failure republish with backoff."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic

from opentelemetry import context as otel_context

from .envelope import PayloadT
from .exceptions import MaxRetriesExceededError
from .retry import DEFAULT_MAX_ELAPSED_TIME, DEFAULT_MAX_INTERVAL, ExponentialBackOff

if TYPE_CHECKING:
    from opentelemetry.context import Context

    from ..structured_logging import ServiceLogger
    from .envelope import Envelope
    from .ports import IEnvelopePublisher, PayloadHandler

_log = logging.getLogger("tracing_lib.messaging.processor")

MAX_RETRIES = 10


@dataclass(frozen=True)
class ProcessorConfig:
    """Backoff limits in seconds; None or 0 selects the default."""

    max_interval: float | None = None
    max_elapsed_time: float | None = None

    def build_backoff(self) -> ExponentialBackOff:
        return ExponentialBackOff(
            max_interval=self.max_interval or DEFAULT_MAX_INTERVAL,
            max_elapsed_time=self.max_elapsed_time or DEFAULT_MAX_ELAPSED_TIME,
        )


class RetryProcessor(Generic[PayloadT]):
    """Processes one envelope at a time with republish-on-failure.

    A failed envelope is not retried in place: a copy with ``retries + 1`` is
    published back to the transport and the caller is told the message is
    done, so the consumer acknowledges it and moves on. The processor then
    waits for the current backoff interval before returning. Envelopes that
    already carry ``MAX_RETRIES`` retries are rejected outright.
    """

    def __init__(
        self,
        publisher: IEnvelopePublisher,
        config: ProcessorConfig | None = None,
        *,
        backoff: ExponentialBackOff | None = None,
        shutdown: asyncio.Event | None = None,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        """Configure the processor.

        Args:
            publisher: Where failed envelopes are republished.
            config: Backoff limits; ignored when *backoff* is given.
            backoff: Pre-built generator (tests pass a seeded one).
            shutdown: Shared event; setting it cuts an in-flight backoff short.
            logger: Defaults to the module logger.
        """
        self._publisher = publisher
        self._backoff = backoff or (config or ProcessorConfig()).build_backoff()
        self._shutdown = shutdown or asyncio.Event()
        self._log = logger or _log

    @property
    def backoff(self) -> ExponentialBackOff:
        return self._backoff

    def stop(self) -> None:
        """Wake any in-flight backoff wait."""
        self._shutdown.set()

    async def process(
        self,
        envelope: Envelope[PayloadT],
        handler: PayloadHandler[PayloadT],
        context: Context | None = None,
    ) -> None:
        """Run *handler* on the payload.

        Args:
            envelope: The consumed envelope.
            handler: Async callable receiving the payload.
            context: Trace context restored from the message; attached while
                the handler runs.

        Raises:
            MaxRetriesExceededError: The envelope hit the retry ceiling.
            MessagingError: Republishing a failed envelope failed.
        """
        if envelope.retries >= MAX_RETRIES:
            raise MaxRetriesExceededError(envelope.retries, MAX_RETRIES)

        delay = self._backoff.next_backoff()
        if delay is None:
            self._backoff.reset()
            delay = 0.0

        try:
            await self._invoke(handler, envelope.payload, context)
        except Exception:  # noqa: BLE001
            self._log.exception(
                "failed to process event",
                extra={"retries": envelope.retries},
            )
            await self._publisher.publish(envelope.next_attempt())
            await self._pause(delay)
            return

        self._backoff.reset()

    async def _invoke(
        self,
        handler: PayloadHandler[PayloadT],
        payload: PayloadT,
        context: Context | None,
    ) -> None:
        if context is None:
            await handler(payload)
            return
        token = otel_context.attach(context)
        try:
            await handler(payload)
        finally:
            otel_context.detach(token)

    async def _pause(self, delay: float) -> None:
        if delay <= 0 or self._shutdown.is_set():
            return
        await _wait(self._shutdown, delay)


async def _wait(event: asyncio.Event, timeout: float) -> None:
    """Wait up to *timeout* seconds, returning early when *event* is set."""
    with contextlib.suppress(asyncio.TimeoutError):
        await asyncio.wait_for(event.wait(), timeout=timeout)
