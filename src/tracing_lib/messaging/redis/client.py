"""RedisStreamClient: XADD publishing and consumer-group reads over redis.asyncio."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError, ResponseError

from ..exceptions import MessagingConnectionError, PublishError, StreamNotFoundError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from ...structured_logging import ServiceLogger

    StreamEntryHandler = Callable[[dict[str, str]], Awaitable[Any]]

_log = logging.getLogger("tracing_lib.messaging.redis")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BLOCK_MS = 1000

_NO_SUCH_KEY = "no such key"
_BUSYGROUP = "BUSYGROUP"


@dataclass(frozen=True)
class RedisConfig:
    """Connection settings.

    ``max_retries``: 0 selects the default of 3 retries, -1 disables retries.
    """

    host: str = "localhost"
    port: int = 6379
    password: str | None = None
    database: int = 0
    max_retries: int = 0

    @property
    def retries(self) -> int:
        if self.max_retries < 0:
            return 0
        return self.max_retries or DEFAULT_MAX_RETRIES


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _entries(response: Any) -> list[tuple[str, str, dict[str, str]]]:
    """Flatten an XREADGROUP reply into (stream, entry_id, fields).

    Accepts both the RESP2 list form and the RESP3 mapping form.
    """
    if not response:
        return []
    streams = response.items() if isinstance(response, dict) else response
    flat: list[tuple[str, str, dict[str, str]]] = []
    for stream, messages in streams:
        # RESP3 wraps the message list in another list.
        if messages and len(messages) == 1 and isinstance(messages[0], list):
            messages = messages[0]
        for entry_id, fields in messages or ():
            if entry_id is None:
                continue
            flat.append(
                (
                    _text(stream),
                    _text(entry_id),
                    {_text(k): _text(v) for k, v in (fields or {}).items()},
                )
            )
    return flat


class RedisStreamClient:
    """Thin wrapper over ``redis.asyncio.Redis`` for stream publish/consume.

    Publishing never creates a stream; consuming creates the stream and the
    consumer group on first use.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        block_ms: int = DEFAULT_BLOCK_MS,
        logger: ServiceLogger | logging.Logger | None = None,
    ) -> None:
        """Wrap an existing client.

        Args:
            redis: Async Redis client.
            block_ms: How long a read for new entries blocks before the loop
                re-checks its stop signal.
            logger: Defaults to the module logger.
        """
        self._redis = redis
        self._block_ms = block_ms
        self._log = logger or _log

    @classmethod
    def from_config(cls, config: RedisConfig, **kwargs: Any) -> RedisStreamClient:
        """Build a client (and its connection pool) from *config*."""
        redis = Redis(
            host=config.host,
            port=config.port,
            password=config.password or None,
            db=config.database,
            decode_responses=True,
            retry=Retry(ExponentialBackoff(cap=0.512, base=0.008), config.retries),
        )
        return cls(redis, **kwargs)

    @property
    def redis(self) -> Redis:
        return self._redis

    async def stream_exists(self, stream_key: str) -> bool:
        try:
            await self._redis.xinfo_stream(stream_key)
        except ResponseError as e:
            if _NO_SUCH_KEY in str(e).lower():
                return False
            raise MessagingConnectionError(
                f"failed to check stream existence: {e}"
            ) from e
        except RedisError as e:
            raise MessagingConnectionError(
                f"failed to check stream existence: {e}"
            ) from e
        return True

    async def publish_to_stream(
        self, stream_key: str, payload: Mapping[str, str]
    ) -> str:
        """XADD *payload* to an existing stream; return the entry id.

        Raises:
            StreamNotFoundError: The stream does not exist.
            PublishError: XADD failed.
        """
        if not await self.stream_exists(stream_key):
            raise StreamNotFoundError(stream_key)
        self._log.debug(
            "publishing to stream", extra={"stream": stream_key, "payload": payload}
        )
        try:
            entry_id = await self._redis.xadd(stream_key, dict(payload), id="*")
        except RedisError as e:
            raise PublishError(f"failed to publish to stream: {e}") from e
        return _text(entry_id)

    async def _ensure_group(self, stream_key: str, consumer_group: str) -> None:
        mkstream = not await self.stream_exists(stream_key)
        self._log.debug(
            "creating consumer group",
            extra={"stream": stream_key, "group": consumer_group},
        )
        try:
            await self._redis.xgroup_create(
                stream_key, consumer_group, id="$", mkstream=mkstream
            )
        except ResponseError as e:
            if not str(e).startswith(_BUSYGROUP):
                raise MessagingConnectionError(
                    f"failed to create consumer group: {e}"
                ) from e
        except RedisError as e:
            raise MessagingConnectionError(
                f"failed to create consumer group: {e}"
            ) from e

    async def _read(
        self,
        stream_key: str,
        consumer_group: str,
        consumer_name: str,
        last_id: str,
        **kwargs: Any,
    ) -> list[tuple[str, str, dict[str, str]]]:
        try:
            response = await self._redis.xreadgroup(
                consumer_group, consumer_name, {stream_key: last_id}, **kwargs
            )
        except RedisError as e:
            raise MessagingConnectionError(f"failed to read messages: {e}") from e
        return _entries(response)

    async def _handle(
        self,
        stream: str,
        consumer_group: str,
        entry_id: str,
        fields: dict[str, str],
        fn: StreamEntryHandler,
    ) -> None:
        try:
            await fn(fields)
        except Exception:  # noqa: BLE001
            self._log.exception(
                "failed to consume message", extra={"entry_id": entry_id}
            )
        # Acked whatever the outcome; failed entries come back via republish.
        try:
            await self._redis.xack(stream, consumer_group, entry_id)
        except RedisError as e:
            raise MessagingConnectionError(
                f"failed to ACK message ({entry_id}): {e}"
            ) from e

    async def consume_stream(
        self,
        stream_key: str,
        consumer_group: str,
        consumer_name: str,
        fn: StreamEntryHandler,
        *,
        stop: asyncio.Event | None = None,
    ) -> None:
        """Feed every entry of *stream_key* to *fn*, one at a time, until *stop* is set.

        Pending entries of this consumer are replayed first, then new entries
        are read one per call.

        Raises:
            MessagingConnectionError: Setup, read or ack failed.
        """
        stop = stop or asyncio.Event()
        await self._ensure_group(stream_key, consumer_group)

        self._log.info("reading pending messages", extra={"stream": stream_key})
        for stream, entry_id, fields in await self._read(
            stream_key, consumer_group, consumer_name, "0"
        ):
            await self._handle(stream, consumer_group, entry_id, fields, fn)

        self._log.info("listening for new messages", extra={"stream": stream_key})
        while not stop.is_set():
            for stream, entry_id, fields in await self._read(
                stream_key,
                consumer_group,
                consumer_name,
                ">",
                count=1,
                block=self._block_ms,
            ):
                await self._handle(stream, consumer_group, entry_id, fields, fn)
        self._log.info("stopped consuming", extra={"stream": stream_key})

    async def close(self) -> None:
        await self._redis.aclose()
