"""
Tests for the SQS queue client wrapper.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from shared.errors import QueueUnavailableError
from shared.queue_client import QueueClient


def _client_error(operation, code="AWS.SimpleQueueService.NonExistentQueue"):
    return ClientError({"Error": {"Code": code, "Message": "The specified queue does not exist."}}, operation)


class TestQueueClientWithSQS:
    def test_send_and_receive(self, queue_client, sqs_queues):
        message_id = queue_client.send(sqs_queues["queue_url"], "hello")

        messages = queue_client.receive(sqs_queues["queue_url"], max_messages=1, visibility_timeout=5)

        assert len(messages) == 1
        assert messages[0].message_id == message_id
        assert messages[0].body == "hello"
        assert messages[0].receive_count == 1

    def test_receive_empty_queue(self, queue_client, sqs_queues):
        assert queue_client.receive(sqs_queues["queue_url"]) == []

    def test_change_visibility_makes_message_visible(self, queue_client, sqs_queues):
        queue_client.send(sqs_queues["queue_url"], "hello")
        message = queue_client.receive(sqs_queues["queue_url"], visibility_timeout=30)[0]

        assert queue_client.receive(sqs_queues["queue_url"]) == []

        queue_client.change_visibility(sqs_queues["queue_url"], message.receipt_handle, 0)

        again = queue_client.receive(sqs_queues["queue_url"])
        assert [m.message_id for m in again] == [message.message_id]
        assert again[0].receipt_handle != message.receipt_handle

    def test_delete(self, queue_client, sqs_queues):
        queue_client.send(sqs_queues["queue_url"], "hello")
        message = queue_client.receive(sqs_queues["queue_url"])[0]

        queue_client.delete(sqs_queues["queue_url"], message.receipt_handle)

        attrs = queue_client.get_attributes(sqs_queues["queue_url"])
        assert attrs["ApproximateNumberOfMessages"] == "0"
        assert attrs["ApproximateNumberOfMessagesNotVisible"] == "0"

    def test_send_with_message_attributes(self, queue_client, sqs_queues):
        queue_client.send(
            sqs_queues["queue_url"], "hello", {"source": {"DataType": "String", "StringValue": "test"}}
        )

        message = queue_client.receive(sqs_queues["queue_url"])[0]

        assert message.message_attributes["source"]["StringValue"] == "test"

    def test_get_attributes_for_missing_queue(self, queue_client):
        with pytest.raises(QueueUnavailableError) as exc_info:
            queue_client.get_attributes("https://sqs.us-east-1.amazonaws.com/123456789012/missing")

        assert exc_info.value.operation == "GetQueueAttributes"


class TestQueueClientErrors:
    @pytest.mark.parametrize("method,sqs_method,args", [
        ("receive", "receive_message", ("url",)),
        ("delete", "delete_message", ("url", "receipt")),
        ("change_visibility", "change_message_visibility", ("url", "receipt", 0)),
        ("send", "send_message", ("url", "body")),
        ("get_attributes", "get_queue_attributes", ("url",)),
    ])
    def test_client_errors_become_queue_unavailable(self, method, sqs_method, args):
        sqs = MagicMock()
        getattr(sqs, sqs_method).side_effect = _client_error(sqs_method)

        with pytest.raises(QueueUnavailableError) as exc_info:
            getattr(QueueClient(sqs), method)(*args)

        assert isinstance(exc_info.value.cause, ClientError)

    def test_connection_errors_become_queue_unavailable(self):
        sqs = MagicMock()
        sqs.receive_message.side_effect = EndpointConnectionError(endpoint_url="http://localhost:4566")

        with pytest.raises(QueueUnavailableError, match="ReceiveMessage"):
            QueueClient(sqs).receive("url")

    def test_receive_omits_visibility_when_not_given(self):
        sqs = MagicMock()
        sqs.receive_message.return_value = {}

        QueueClient(sqs).receive("url", max_messages=10)

        kwargs = sqs.receive_message.call_args.kwargs
        assert "VisibilityTimeout" not in kwargs
        assert kwargs["MaxNumberOfMessages"] == 10
        assert kwargs["AttributeNames"] == ["All"]
        assert kwargs["MessageAttributeNames"] == ["All"]

    def test_send_omits_empty_attributes(self):
        sqs = MagicMock()
        sqs.send_message.return_value = {"MessageId": "m1"}

        assert QueueClient(sqs).send("url", "body", {}) == "m1"

        assert "MessageAttributes" not in sqs.send_message.call_args.kwargs
