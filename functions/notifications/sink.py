"""
Notification sinks.

The consumer hands one summary per successfully decoded order to a sink.
Queue redelivery can call a sink more than once for the same order; sinks
are not expected to deduplicate.
"""

import logging
from typing import Protocol

from shared.types import NotificationSummary

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    def send(self, summary: NotificationSummary) -> None:
        ...


class FakeEmailSink:
    """Logs a fake order confirmation email instead of sending one."""

    def send(self, summary: NotificationSummary) -> None:
        logger.info(
            f"Sending fake email for order {summary['orderId']}",
            extra={
                "event_type": summary["eventType"],
                "order_id": summary["orderId"],
                "customer_id": summary["customerId"],
                "item_count": summary["itemCount"],
                "total": str(summary["total"]),
            },
        )
