"""Redis stream transport (redis.asyncio)."""

from .client import RedisConfig, RedisStreamClient
from .consumer import RedisStreamConsumer
from .propagation import extract_trace_context, wrap_publish_message
from .publisher import RedisStreamPublisher

__all__ = [
    "RedisConfig",
    "RedisStreamClient",
    "RedisStreamConsumer",
    "RedisStreamPublisher",
    "extract_trace_context",
    "wrap_publish_message",
]
