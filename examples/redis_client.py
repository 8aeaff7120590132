"""Redis example client: calls the server and publishes a traced event every 5s."""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING

import httpx
from _common import PublishMessage, service_logger, setup_tracing

from tracing_lib import new_http_client
from tracing_lib.messaging import Envelope, MessagingError
from tracing_lib.messaging.redis import (
    RedisConfig,
    RedisStreamClient,
    RedisStreamPublisher,
    wrap_publish_message,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

    from tracing_lib import ServiceLogger

STREAM = "test-stream"
SERVER_URL = os.environ.get("SERVER_URL", "http://server:8888")


async def do_http_call(
    http: httpx.AsyncClient, tracer: Tracer, log: ServiceLogger
) -> None:
    with tracer.start_as_current_span("call_endpoint"):
        log.info("calling server")
        try:
            response = await http.get("/hello")
        except httpx.HTTPError:
            log.exception("request failed")
            return
        log.info(
            "responded",
            extra={
                "response_status_code": response.status_code,
                "response_body": response.text,
            },
        )


async def publish_message(
    publisher: RedisStreamPublisher[PublishMessage],
    tracer: Tracer,
    log: ServiceLogger,
) -> None:
    with tracer.start_as_current_span("publish_message"):
        envelope = wrap_publish_message(Envelope(payload=PublishMessage(body="hello")))
        try:
            await publisher.publish(envelope)
        except MessagingError:
            log.exception("failed to publish message")
            return
        log.info("published message")


async def main() -> None:
    log = service_logger("client")
    runtime = setup_tracing("client", log)
    client = RedisStreamClient.from_config(
        RedisConfig(host=os.environ.get("REDIS_HOST", "redis")), logger=log
    )
    publisher: RedisStreamPublisher[PublishMessage] = RedisStreamPublisher(
        client, STREAM
    )
    log.info("starting client")
    try:
        async with new_http_client(tracer=runtime.tracer, base_url=SERVER_URL) as http:
            while True:
                await do_http_call(http, runtime.tracer, log)
                await publish_message(publisher, runtime.tracer, log)
                await asyncio.sleep(5)
    finally:
        await client.close()
        runtime.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
