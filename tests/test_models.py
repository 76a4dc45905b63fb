"""
Tests for envelope and order event decoding.

The queue body is a double-encoded JSON envelope; these tests pin the
validation rules for both layers and the derived order total.
"""

import json
from decimal import Decimal

import pytest

from conftest import make_envelope, make_sqs_message
from shared.errors import MessageDecodeError
from shared.models import (
    OrderEvent,
    OrderItem,
    QueueMessage,
    RetryResult,
    decode_envelope,
    decode_message_body,
    decode_order_event,
)


class TestDecodeEnvelope:
    def test_decodes_sns_envelope(self, sample_order):
        envelope = decode_envelope(make_envelope(sample_order))

        assert envelope.timestamp == "2024-01-15T10:00:00.000Z"
        assert envelope.type == "Notification"
        assert json.loads(envelope.message)["orderId"] == "order-123"

    def test_rejects_non_json_body(self):
        with pytest.raises(MessageDecodeError, match="not valid JSON"):
            decode_envelope("not valid json {{{")

    def test_rejects_non_object_body(self):
        with pytest.raises(MessageDecodeError, match="JSON object"):
            decode_envelope("[1, 2]")

    def test_rejects_missing_message_field(self):
        with pytest.raises(MessageDecodeError, match="Message"):
            decode_envelope(json.dumps({"Timestamp": "2024-01-15T10:00:00Z"}))

    def test_rejects_inline_object_message(self, sample_order):
        """Message must be a JSON string, not an embedded object."""
        with pytest.raises(MessageDecodeError):
            decode_envelope(json.dumps({"Message": sample_order}))

    def test_missing_timestamp_is_none(self):
        envelope = decode_envelope(json.dumps({"Message": "{}"}))
        assert envelope.timestamp is None


class TestDecodeOrderEvent:
    def test_decodes_valid_event(self, sample_order):
        event = decode_order_event(json.dumps(sample_order))

        assert event.event_type == "OrderCreated"
        assert event.order_id == "order-123"
        assert event.customer_id == "customer-1"
        assert event.items[0] == OrderItem(product_id="p1", quantity=2, price=Decimal("29.99"))

    def test_event_type_is_optional(self):
        event = decode_order_event(
            json.dumps({"orderId": "fail-me", "customerId": "c1", "items": []})
        )
        assert event.event_type is None

    def test_inner_invalid_json_fails(self):
        with pytest.raises(MessageDecodeError):
            decode_order_event("invalid json")

    @pytest.mark.parametrize("field", ["orderId", "customerId", "items"])
    def test_missing_required_field_fails(self, sample_order, field):
        del sample_order[field]
        with pytest.raises(MessageDecodeError):
            decode_order_event(json.dumps(sample_order))

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True, None])
    def test_quantity_must_be_positive_integer(self, sample_order, quantity):
        sample_order["items"][0]["quantity"] = quantity
        with pytest.raises(MessageDecodeError, match="quantity"):
            decode_order_event(json.dumps(sample_order))

    @pytest.mark.parametrize("price", [-0.01, "29.99", None, False])
    def test_price_must_be_non_negative_number(self, sample_order, price):
        sample_order["items"][0]["price"] = price
        with pytest.raises(MessageDecodeError, match="price"):
            decode_order_event(json.dumps(sample_order))

    @pytest.mark.parametrize("raw_price", ["1e5000", "1e999999999", "1000000000000000", "1" + "0" * 5000])
    def test_out_of_range_price_fails(self, sample_order, raw_price):
        text = json.dumps(sample_order).replace("29.99", raw_price)
        with pytest.raises(MessageDecodeError):
            decode_order_event(text)

    def test_largest_allowed_price(self, sample_order):
        text = json.dumps(sample_order).replace("29.99", "999999999999999.99")
        event = decode_order_event(text)
        assert event.items[0].price == Decimal("999999999999999.99")

    def test_quantity_upper_bound(self, sample_order):
        sample_order["items"][0]["quantity"] = 1_000_001
        with pytest.raises(MessageDecodeError, match="quantity"):
            decode_order_event(json.dumps(sample_order))

    def test_deeply_nested_json_fails_as_decode_error(self):
        with pytest.raises(MessageDecodeError, match="nested too deeply"):
            decode_order_event("[" * 100000)

    def test_deeply_nested_envelope_fails_as_decode_error(self):
        with pytest.raises(MessageDecodeError):
            decode_envelope("[" * 100000)

    def test_zero_and_integer_prices_allowed(self, sample_order):
        sample_order["items"][0]["price"] = 0
        sample_order["items"][1]["price"] = 10
        event = decode_order_event(json.dumps(sample_order))
        assert event.total == Decimal("10")

    def test_decode_message_body_applies_both_layers(self, sample_order):
        envelope, event = decode_message_body(make_envelope(sample_order))
        assert envelope.timestamp is not None
        assert event.order_id == "order-123"


class TestOrderEvent:
    def test_total_is_sum_of_quantity_times_price(self, sample_order, expected_total):
        event = decode_order_event(json.dumps(sample_order))
        assert event.total == expected_total == Decimal("65.48")

    def test_total_of_empty_order_is_zero(self):
        assert OrderEvent(order_id="o", customer_id="c").total == Decimal("0")

    def test_summary_shape(self, sample_order, expected_total):
        summary = decode_order_event(json.dumps(sample_order)).summary()

        assert summary == {
            "eventType": "OrderCreated",
            "orderId": "order-123",
            "customerId": "customer-1",
            "itemCount": 2,
            "total": expected_total,
        }

    def test_to_dict_round_trips(self, sample_order):
        event = decode_order_event(json.dumps(sample_order))

        from shared.response_utils import dumps

        assert decode_order_event(dumps(event.to_dict())) == event

    def test_to_dict_omits_missing_event_type(self):
        data = OrderEvent(order_id="o", customer_id="c").to_dict()
        assert "eventType" not in data


class TestQueueMessage:
    def test_from_sqs(self):
        message = QueueMessage.from_sqs(make_sqs_message("body", receive_count="3"))

        assert message.message_id == "msg-1"
        assert message.receipt_handle == "receipt-1"
        assert message.body == "body"
        assert message.receive_count == 3

    def test_receive_count_defaults_to_zero(self):
        message = QueueMessage.from_sqs({"MessageId": "m", "ReceiptHandle": "r", "Body": ""})
        assert message.receive_count == 0
        assert message.message_attributes == {}


class TestRetryResult:
    def test_omits_error_when_retried(self):
        assert RetryResult("m1", "retried").to_dict() == {"messageId": "m1", "status": "retried"}

    def test_includes_error_when_failed(self):
        result = RetryResult("m1", "failed", error="boom").to_dict()
        assert result["error"] == "boom"
