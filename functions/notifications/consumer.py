"""
Order Event Consumer - long-polls the main queue and sends notifications.

Processing protocol per delivery:
- Decode the envelope and the inner order event
- Send the notification summary to the sink
- Delete the message using its receipt handle

On any processing failure the message's visibility is reset to 0 so it is
received again right away. Each failed receive counts toward the queue's
redrive policy, so a poison message reaches the DLQ after maxReceiveCount
attempts instead of waiting out long visibility timeouts.

Delivery is at-least-once: a redelivered message is sent to the sink again.
"""

import logging
import threading
from typing import Callable, Optional

from shared.errors import ForcedFailureError, QueueUnavailableError
from shared.logging_utils import message_context
from shared.metrics import MESSAGES_FAILED, MESSAGES_PROCESSED, emit_metric
from shared.models import (
    OrderEvent,
    ProcessingOutcome,
    ProcessingResult,
    QueueMessage,
    decode_message_body,
)
from shared.queue_client import QueueClient

from .sink import NotificationSink

logger = logging.getLogger(__name__)

FailPredicate = Callable[[OrderEvent], bool]


def order_id_fault_injector(order_id: Optional[str]) -> Optional[FailPredicate]:
    """
    Build a predicate that forces failure for one order id.

    Used to drive the failure and dead-letter path end to end without a
    malformed payload. Returns None (no injection) for an empty id.
    """
    if not order_id:
        return None
    return lambda event: event.order_id == order_id


class OrderEventConsumer:
    """Sequential consumer: one outstanding receive, one message at a time."""

    def __init__(
        self,
        queue_client: QueueClient,
        queue_url: str,
        sink: NotificationSink,
        fail_predicate: Optional[FailPredicate] = None,
        wait_time_seconds: int = 20,
        visibility_timeout: int = 5,
        error_backoff_seconds: float = 1.0,
    ):
        self._queue = queue_client
        self._queue_url = queue_url
        self._sink = sink
        self._fail_predicate = fail_predicate
        self._wait_time_seconds = wait_time_seconds
        self._visibility_timeout = visibility_timeout
        self._error_backoff_seconds = error_backoff_seconds
        self._stop_event = threading.Event()
        self.processed = 0
        self.failed = 0

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the loop to exit after the current iteration."""
        self._stop_event.set()

    def run(self) -> None:
        """Poll until stop() is called. Per-message and receive errors never end the loop."""
        logger.info("Starting notifications worker", extra={"queue_url": self._queue_url})

        while not self._stop_event.is_set():
            result = self.poll_once()
            if result is None:
                continue

            if result.outcome is ProcessingOutcome.SUCCEEDED:
                self.processed += 1
                emit_metric(MESSAGES_PROCESSED)
            else:
                self.failed += 1
                logger.error(
                    f"Error processing message {result.message_id}: {result.error}",
                    extra={
                        "order_id": result.order_id,
                        "visibility_reset": result.visibility_reset,
                    },
                )
                emit_metric(MESSAGES_FAILED)

        logger.info(
            "Notifications worker stopped",
            extra={"processed": self.processed, "failed": self.failed},
        )

    def poll_once(self) -> Optional[ProcessingResult]:
        """
        Receive at most one message and process it.

        Returns:
            ProcessingResult, or None when nothing was received or the
            receive call failed (after the error backoff)
        """
        try:
            messages = self._queue.receive(
                self._queue_url,
                max_messages=1,
                wait_time_seconds=self._wait_time_seconds,
                visibility_timeout=self._visibility_timeout,
            )
        except QueueUnavailableError as e:
            logger.error(f"Error polling messages: {e}")
            # Returns early if stop() is called during the backoff
            self._stop_event.wait(self._error_backoff_seconds)
            return None

        if not messages:
            return None

        return self.process_message(messages[0])

    def process_message(self, message: QueueMessage) -> ProcessingResult:
        """Handle one delivery. Never raises for per-message failures."""
        with message_context(message.message_id):
            event = None
            try:
                event = self._decode(message)
                self._notify(event)
            except Exception as e:
                return self._fail(message, e, event)

            deleted = self._delete(message)
            return ProcessingResult(
                outcome=ProcessingOutcome.SUCCEEDED,
                message_id=message.message_id,
                order_id=event.order_id,
                deleted=deleted,
            )

    def _decode(self, message: QueueMessage) -> OrderEvent:
        _, event = decode_message_body(message.body)
        return event

    def _notify(self, event: OrderEvent) -> None:
        if self._fail_predicate is not None and self._fail_predicate(event):
            raise ForcedFailureError(event.order_id)

        self._sink.send(event.summary())

    def _delete(self, message: QueueMessage) -> bool:
        try:
            self._queue.delete(self._queue_url, message.receipt_handle)
        except QueueUnavailableError as e:
            # Not retried here; the message reappears once its visibility expires
            logger.error(f"Failed to delete processed message {message.message_id}: {e}")
            return False

        logger.info(f"Message {message.message_id} processed and deleted")
        return True

    def _fail(
        self, message: QueueMessage, error: Exception, event: Optional[OrderEvent]
    ) -> ProcessingResult:
        """
        Reset visibility after a processing failure.

        The reset is best-effort: its own failure is logged and the original
        processing error is what gets reported.
        """
        logger.warning(
            f"Processing failed for message {message.message_id}: {error}",
            extra={
                "error_type": type(error).__name__,
                "error_code": getattr(error, "code", "unexpected"),
                "receive_count": message.receive_count,
            },
        )

        visibility_reset = True
        try:
            self._queue.change_visibility(self._queue_url, message.receipt_handle, 0)
        except QueueUnavailableError as e:
            visibility_reset = False
            logger.error(f"Failed to reset visibility for message {message.message_id}: {e}")

        return ProcessingResult(
            outcome=ProcessingOutcome.FAILED,
            message_id=message.message_id,
            order_id=event.order_id if event else None,
            error=str(error),
            visibility_reset=visibility_reset,
        )
