"""
Thin SQS wrapper shared by the consumer loop and the DLQ admin.

Every botocore failure is re-raised as QueueUnavailableError so callers can
tell queue transport failures apart from their own per-message errors. The
queue service alone arbitrates receipt handle validity; nothing is cached or
locked here.
"""

import logging
from typing import Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import QueueUnavailableError
from .logging_utils import log_queue_call
from .models import QueueMessage

logger = logging.getLogger(__name__)

_SQS_ERRORS = (ClientError, BotoCoreError)


class QueueClient:
    """Queue capability handle passed into the consumer and admin components."""

    def __init__(self, sqs):
        self._sqs = sqs

    def receive(
        self,
        queue_url: str,
        max_messages: int = 1,
        wait_time_seconds: int = 0,
        visibility_timeout: Optional[int] = None,
    ) -> List[QueueMessage]:
        params = {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": max_messages,
            "WaitTimeSeconds": wait_time_seconds,
            "AttributeNames": ["All"],
            "MessageAttributeNames": ["All"],
        }
        if visibility_timeout is not None:
            params["VisibilityTimeout"] = visibility_timeout

        try:
            response = self._sqs.receive_message(**params)
        except _SQS_ERRORS as e:
            log_queue_call(logger, "ReceiveMessage", queue_url, False, str(e))
            raise QueueUnavailableError("ReceiveMessage", e)

        return [QueueMessage.from_sqs(raw) for raw in response.get("Messages", [])]

    def delete(self, queue_url: str, receipt_handle: str) -> None:
        try:
            self._sqs.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except _SQS_ERRORS as e:
            log_queue_call(logger, "DeleteMessage", queue_url, False, str(e))
            raise QueueUnavailableError("DeleteMessage", e)
        log_queue_call(logger, "DeleteMessage", queue_url, True)

    def change_visibility(self, queue_url: str, receipt_handle: str, visibility_timeout: int) -> None:
        try:
            self._sqs.change_message_visibility(
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle,
                VisibilityTimeout=visibility_timeout,
            )
        except _SQS_ERRORS as e:
            log_queue_call(logger, "ChangeMessageVisibility", queue_url, False, str(e))
            raise QueueUnavailableError("ChangeMessageVisibility", e)
        log_queue_call(logger, "ChangeMessageVisibility", queue_url, True)

    def send(self, queue_url: str, body: str, message_attributes: Optional[Dict] = None) -> str:
        """Send a message and return its new MessageId."""
        params = {"QueueUrl": queue_url, "MessageBody": body}
        if message_attributes:
            params["MessageAttributes"] = message_attributes

        try:
            response = self._sqs.send_message(**params)
        except _SQS_ERRORS as e:
            log_queue_call(logger, "SendMessage", queue_url, False, str(e))
            raise QueueUnavailableError("SendMessage", e)
        log_queue_call(logger, "SendMessage", queue_url, True)
        return response.get("MessageId", "")

    def get_attributes(self, queue_url: str, attribute_names: Optional[List[str]] = None) -> Dict[str, str]:
        try:
            response = self._sqs.get_queue_attributes(
                QueueUrl=queue_url,
                AttributeNames=attribute_names or ["All"],
            )
        except _SQS_ERRORS as e:
            log_queue_call(logger, "GetQueueAttributes", queue_url, False, str(e))
            raise QueueUnavailableError("GetQueueAttributes", e)
        return response.get("Attributes", {})
