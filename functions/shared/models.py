"""
Domain and queue data model.

Queue bodies are SNS-style envelopes whose "Message" field holds the order
event as a JSON string. Both layers are decoded here; the double encoding is
a contract with the producer and is never altered.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import MessageDecodeError

# Keeps prices and totals well inside float and Decimal context range
MAX_PRICE_DIGITS = 15
MAX_QUANTITY = 1_000_000


@dataclass
class QueueMessage:
    """One delivery of a message received from SQS."""

    message_id: str
    receipt_handle: str
    body: str
    attributes: Dict[str, str] = field(default_factory=dict)
    message_attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_sqs(cls, raw: dict) -> "QueueMessage":
        return cls(
            message_id=raw.get("MessageId", "unknown"),
            receipt_handle=raw["ReceiptHandle"],
            body=raw.get("Body", ""),
            attributes=raw.get("Attributes") or {},
            message_attributes=raw.get("MessageAttributes") or {},
        )

    @property
    def receive_count(self) -> int:
        try:
            return int(self.attributes.get("ApproximateReceiveCount", 0))
        except (TypeError, ValueError):
            return 0


@dataclass
class Envelope:
    """SNS notification wrapper around an order event."""

    message: str
    timestamp: Optional[str] = None
    type: Optional[str] = None
    message_id: Optional[str] = None
    topic_arn: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "Type": self.type or "Notification",
            "MessageId": self.message_id,
            "TopicArn": self.topic_arn,
            "Message": self.message,
            "Timestamp": self.timestamp,
        }


@dataclass
class OrderItem:
    product_id: str
    quantity: int
    price: Decimal

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "quantity": self.quantity, "price": self.price}


@dataclass
class OrderEvent:
    """Order event carried inside an envelope."""

    order_id: str
    customer_id: str
    items: List[OrderItem] = field(default_factory=list)
    event_type: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0"))

    def summary(self) -> dict:
        """Notification summary handed to the sink."""
        return {
            "eventType": self.event_type,
            "orderId": self.order_id,
            "customerId": self.customer_id,
            "itemCount": len(self.items),
            "total": self.total,
        }

    def to_dict(self) -> dict:
        data = {
            "orderId": self.order_id,
            "customerId": self.customer_id,
            "items": [item.to_dict() for item in self.items],
        }
        if self.event_type is not None:
            data = {"eventType": self.event_type, **data}
        return data


class ProcessingOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ProcessingResult:
    """Outcome of handling one delivery in the consumer loop."""

    outcome: ProcessingOutcome
    message_id: str
    order_id: Optional[str] = None
    error: Optional[str] = None
    deleted: bool = False
    visibility_reset: bool = False

    @property
    def succeeded(self) -> bool:
        return self.outcome is ProcessingOutcome.SUCCEEDED


RETRY_STATUS_RETRIED = "retried"
RETRY_STATUS_FAILED = "failed"


@dataclass
class RetryResult:
    """Outcome of redriving one DLQ message."""

    message_id: str
    status: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"messageId": self.message_id, "status": self.status}
        if self.error is not None:
            data["error"] = self.error
        return data


def _load_json(text: Any, what: str) -> Any:
    if not isinstance(text, (str, bytes, bytearray)):
        raise MessageDecodeError(f"{what} is not a JSON string")
    try:
        return json.loads(text, parse_float=Decimal)
    except ValueError as e:
        raise MessageDecodeError(f"{what} is not valid JSON: {e}")
    except RecursionError:
        raise MessageDecodeError(f"{what} is nested too deeply")


def _require_str(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise MessageDecodeError(f"Order event field {key!r} must be a string")
    return value


def _decode_item(raw: Any, index: int) -> OrderItem:
    if not isinstance(raw, dict):
        raise MessageDecodeError(f"Order item {index} must be an object")

    product_id = raw.get("productId")
    if not isinstance(product_id, str):
        raise MessageDecodeError(f"Order item {index} productId must be a string")

    quantity = raw.get("quantity")
    # bool is an int subclass
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise MessageDecodeError(f"Order item {index} quantity must be a positive integer")
    if quantity > MAX_QUANTITY:
        raise MessageDecodeError(f"Order item {index} quantity exceeds {MAX_QUANTITY}")

    price = raw.get("price")
    if isinstance(price, bool) or not isinstance(price, (int, Decimal)):
        raise MessageDecodeError(f"Order item {index} price must be a number")
    price = Decimal(price)
    if not price.is_finite() or price < 0:
        raise MessageDecodeError(f"Order item {index} price must be non-negative")
    if price.adjusted() >= MAX_PRICE_DIGITS:
        raise MessageDecodeError(f"Order item {index} price is out of range")

    return OrderItem(product_id=product_id, quantity=quantity, price=price)


def decode_envelope(body: str) -> Envelope:
    """
    Decode the outer SNS-style envelope of a queue message body.

    Raises:
        MessageDecodeError: body is not a JSON object with a string Message
    """
    data = _load_json(body, "Message body")
    if not isinstance(data, dict):
        raise MessageDecodeError("Message body must be a JSON object")

    message = data.get("Message")
    if not isinstance(message, str):
        raise MessageDecodeError("Envelope is missing a string 'Message' field")

    timestamp = data.get("Timestamp")
    return Envelope(
        message=message,
        timestamp=timestamp if isinstance(timestamp, str) else None,
        type=data.get("Type"),
        message_id=data.get("MessageId"),
        topic_arn=data.get("TopicArn"),
    )


def decode_order_event(text: str) -> OrderEvent:
    """
    Decode and validate the inner order event JSON.

    Raises:
        MessageDecodeError: payload is not a valid order event
    """
    data = _load_json(text, "Order event")
    if not isinstance(data, dict):
        raise MessageDecodeError("Order event must be a JSON object")

    event_type = data.get("eventType")
    if event_type is not None and not isinstance(event_type, str):
        raise MessageDecodeError("Order event field 'eventType' must be a string")

    items = data.get("items")
    if not isinstance(items, list):
        raise MessageDecodeError("Order event field 'items' must be a list")

    return OrderEvent(
        order_id=_require_str(data, "orderId"),
        customer_id=_require_str(data, "customerId"),
        items=[_decode_item(item, i) for i, item in enumerate(items)],
        event_type=event_type,
    )


def decode_message_body(body: str) -> Tuple[Envelope, OrderEvent]:
    """Decode envelope and inner order event in one step."""
    envelope = decode_envelope(body)
    return envelope, decode_order_event(envelope.message)
