"""
DLQ Admin - inspect and redrive dead-lettered order events.

List is non-destructive: every message it receives has its visibility reset
to 0 straight away, so repeated list calls and retry calls see the same
messages. Retry re-enqueues a message on the main queue before deleting it
from the DLQ. A crash between the two steps can duplicate a message but can
never lose one.
"""

import logging
from typing import Any, Dict, List, Union

from shared.config import MAX_BATCH_SIZE
from shared.errors import MessageDecodeError, QueueUnavailableError
from shared.logging_utils import message_context
from shared.metrics import DLQ_MESSAGES_RETRIED, DLQ_RETRY_FAILURES, emit_batch_metrics
from shared.models import (
    RETRY_STATUS_FAILED,
    RETRY_STATUS_RETRIED,
    QueueMessage,
    RetryResult,
    decode_message_body,
)
from shared.queue_client import QueueClient
from shared.types import DLQDecodeFailureRecord, DLQMessageRecord, ListDLQResponse, RetryDLQResponse

logger = logging.getLogger(__name__)

DECODE_FAILED = "decode_failed"

# Keys SendMessage accepts back from a received MessageAttributes entry
_ATTRIBUTE_VALUE_KEYS = ("DataType", "StringValue", "BinaryValue")


def _forwardable_attributes(message: QueueMessage) -> Dict[str, Any]:
    return {
        name: {k: v for k, v in value.items() if k in _ATTRIBUTE_VALUE_KEYS}
        for name, value in message.message_attributes.items()
    }


class DLQAdmin:
    """List and retry operations over the dead-letter queue."""

    def __init__(
        self,
        queue_client: QueueClient,
        queue_url: str,
        dlq_url: str,
        visibility_timeout: int = 30,
        batch_size: int = MAX_BATCH_SIZE,
    ):
        self._queue = queue_client
        self._queue_url = queue_url
        self._dlq_url = dlq_url
        self._visibility_timeout = visibility_timeout
        self._batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))

    def _receive_batch(self) -> List[QueueMessage]:
        return self._queue.receive(
            self._dlq_url,
            max_messages=self._batch_size,
            visibility_timeout=self._visibility_timeout,
        )

    def _release(self, message: QueueMessage) -> bool:
        """Make a DLQ message visible again. Best-effort."""
        try:
            self._queue.change_visibility(self._dlq_url, message.receipt_handle, 0)
            return True
        except QueueUnavailableError as e:
            logger.warning(f"Failed to reset visibility for DLQ message {message.message_id}: {e}")
            return False

    def list_messages(self) -> ListDLQResponse:
        """
        Report DLQ attributes and up to one batch of decoded messages.

        Raises:
            QueueUnavailableError: if the attributes or receive call fails
        """
        attributes = self._queue.get_attributes(self._dlq_url)
        messages = self._receive_batch()

        for message in messages:
            self._release(message)

        records = [self._describe(message) for message in messages]

        logger.info(
            f"Listed {len(records)} DLQ messages",
            extra={"approximate_count": attributes.get("ApproximateNumberOfMessages")},
        )

        return {"queueAttributes": attributes, "messages": records}

    def health(self) -> Dict[str, Any]:
        """Queue depth checks for the main queue and the DLQ."""
        health: Dict[str, Any] = {"status": "healthy", "checks": {}}

        for name, url in (("main_queue", self._queue_url), ("dlq", self._dlq_url)):
            try:
                attrs = self._queue.get_attributes(
                    url, ["ApproximateNumberOfMessages", "ApproximateNumberOfMessagesNotVisible"]
                )
            except QueueUnavailableError as e:
                health["checks"][name] = {"status": "error", "error": str(e)}
                health["status"] = "unhealthy"
                continue

            health["checks"][name] = {
                "status": "healthy",
                "depth": int(attrs.get("ApproximateNumberOfMessages", 0)),
                "in_flight": int(attrs.get("ApproximateNumberOfMessagesNotVisible", 0)),
            }

        dlq = health["checks"]["dlq"]
        if dlq.get("depth", 0) > 0:
            dlq["status"] = "degraded"
            if health["status"] == "healthy":
                health["status"] = "degraded"

        return health

    def _describe(self, message: QueueMessage) -> Union[DLQMessageRecord, DLQDecodeFailureRecord]:
        try:
            envelope, event = decode_message_body(message.body)
        except MessageDecodeError as e:
            return {
                "messageId": message.message_id,
                "receiptHandle": message.receipt_handle,
                "error": DECODE_FAILED,
                "detail": str(e),
                "body": message.body,
            }

        return {
            "messageId": message.message_id,
            "receiptHandle": message.receipt_handle,
            "event": event.to_dict(),
            "timestamp": envelope.timestamp,
            "receiveCount": message.receive_count,
        }

    def retry_messages(self) -> RetryDLQResponse:
        """
        Move up to one batch of DLQ messages back to the main queue.

        Every received message gets a RetryResult; a failure on one message
        does not stop the rest of the batch.

        Raises:
            QueueUnavailableError: if the receive call fails
        """
        messages = self._receive_batch()
        results = [self._retry_one(message) for message in messages]

        retried = sum(1 for r in results if r.status == RETRY_STATUS_RETRIED)
        failed = len(results) - retried
        logger.info(
            f"DLQ retry: {len(results)} considered, {retried} retried, {failed} failed",
        )
        emit_batch_metrics([
            {"metric_name": DLQ_MESSAGES_RETRIED, "value": retried},
            {"metric_name": DLQ_RETRY_FAILURES, "value": failed},
        ])

        return {
            "totalProcessed": len(messages),
            "results": [r.to_dict() for r in results],
        }

    def _retry_one(self, message: QueueMessage) -> RetryResult:
        with message_context(message.message_id):
            try:
                # Send first: never delete a message that is not yet on the main queue
                self._queue.send(self._queue_url, message.body, _forwardable_attributes(message))
                self._queue.delete(self._dlq_url, message.receipt_handle)
            except QueueUnavailableError as e:
                logger.error(f"Failed to retry DLQ message {message.message_id}: {e}")
                self._release(message)
                return RetryResult(message_id=message.message_id, status=RETRY_STATUS_FAILED, error=str(e))

            logger.info(f"Requeued DLQ message {message.message_id} to main queue")
            return RetryResult(message_id=message.message_id, status=RETRY_STATUS_RETRIED)
