"""
Shared Type Definitions.

TypedDicts for sink summaries, admin responses, and Lambda events.
"""

from decimal import Decimal
from typing import Any, Optional, TypedDict, Union


class NotificationSummary(TypedDict):
    """Payload handed to the notification sink."""

    eventType: Optional[str]
    orderId: str
    customerId: str
    itemCount: int
    total: Decimal


class DLQMessageRecord(TypedDict):
    """Decoded DLQ message as returned by the list operation."""

    messageId: str
    receiptHandle: str
    event: dict[str, Any]
    timestamp: Optional[str]
    receiveCount: int


class DLQDecodeFailureRecord(TypedDict):
    """DLQ message whose body could not be decoded."""

    messageId: str
    receiptHandle: str
    error: str
    detail: str
    body: str


class ListDLQResponse(TypedDict):
    queueAttributes: dict[str, str]
    messages: list[Union[DLQMessageRecord, DLQDecodeFailureRecord]]


class RetryDLQResponse(TypedDict):
    totalProcessed: int
    results: list[dict[str, Any]]


class APIGatewayEvent(TypedDict, total=False):
    """API Gateway proxy event. The admin handlers ignore it; order intake reads the body."""

    httpMethod: str
    path: str
    headers: dict[str, str]
    body: Optional[str]
    isBase64Encoded: bool


class LambdaResponse(TypedDict):
    """API Gateway proxy response built by response_utils.json_response."""

    statusCode: int
    headers: dict[str, str]
    body: str
