# Shared utilities package
from .errors import (
    ConfigurationError,
    MessageDecodeError,
    NotificationsError,
    QueueUnavailableError,
)
from .models import OrderEvent, OrderItem, QueueMessage
from .queue_client import QueueClient

__all__ = [
    "ConfigurationError",
    "MessageDecodeError",
    "NotificationsError",
    "QueueUnavailableError",
    "OrderEvent",
    "OrderItem",
    "QueueMessage",
    "QueueClient",
]
