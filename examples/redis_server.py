"""Redis example server: ``/hello`` over HTTP plus a stream consumer.

Run with ``python examples/redis_server.py``; pair with ``redis_client.py``.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from typing import TYPE_CHECKING

import uvicorn
from _common import PublishMessage, service_logger, setup_tracing
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from tracing_lib.contrib.starlette import TracingMiddleware
from tracing_lib.messaging import (
    EnvelopeSerializer,
    MessagingError,
    ProcessorConfig,
    RetryProcessor,
)
from tracing_lib.messaging.redis import (
    RedisConfig,
    RedisStreamClient,
    RedisStreamConsumer,
    RedisStreamPublisher,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from opentelemetry.context import Context
    from starlette.requests import Request

    from tracing_lib.messaging import Envelope

STREAM = "test-stream"
GROUP = "test-consumer-group"
CONSUMER = "test-consumer-name"


def create_app() -> Starlette:
    log = service_logger("server")
    runtime = setup_tracing("server", log)
    tracer = runtime.tracer

    client = RedisStreamClient.from_config(
        RedisConfig(host=os.environ.get("REDIS_HOST", "redis")), logger=log
    )
    serializer: EnvelopeSerializer[PublishMessage] = EnvelopeSerializer(PublishMessage)
    consumer = RedisStreamConsumer(
        client, STREAM, GROUP, CONSUMER, serializer=serializer, logger=log
    )
    stop = asyncio.Event()
    processor: RetryProcessor[PublishMessage] = RetryProcessor(
        RedisStreamPublisher(client, STREAM, serializer=serializer),
        ProcessorConfig(max_interval=10, max_elapsed_time=10),
        shutdown=stop,
        logger=log,
    )

    async def process_message(message: PublishMessage) -> None:
        with tracer.start_as_current_span("handleMessage"):
            log.info("handling event", extra={"body": message.body})

    async def on_event(envelope: Envelope[PublishMessage], context: Context) -> None:
        log.info("received event, commencing processing")
        await processor.process(envelope, process_message, context)

    def do_magic() -> None:
        with tracer.start_as_current_span("prepare_response"):
            log.info("doing magic")

    async def hello(request: Request) -> PlainTextResponse:
        with tracer.start_as_current_span("prepare_response"):
            log.info("handling request")
            do_magic()
            return PlainTextResponse("Hello, world!")

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        task = asyncio.create_task(consumer.consume(on_event, stop=stop))
        yield
        stop.set()
        try:
            await task
        except MessagingError:
            log.exception("failed to consume redis stream")
        await client.close()
        runtime.shutdown()

    app = Starlette(routes=[Route("/hello", hello)], lifespan=lifespan)
    app.add_middleware(TracingMiddleware, tracer=tracer, span_name="receive")
    return app


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8888)  # noqa: S104
