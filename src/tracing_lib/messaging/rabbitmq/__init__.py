"""RabbitMQ transport (aio-pika)."""

from .connection import RabbitMQConnectionManager
from .consumer import RabbitMQConsumer
from .propagation import extract_trace_context_from_delivery, wrap_publish_message
from .publisher import RabbitMQPublisher

__all__ = [
    "RabbitMQConnectionManager",
    "RabbitMQConsumer",
    "RabbitMQPublisher",
    "extract_trace_context_from_delivery",
    "wrap_publish_message",
]
