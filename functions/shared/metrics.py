"""
CloudWatch custom metrics for the consumer and the DLQ admin.

Emission is off unless METRICS_ENABLED=true. METRICS_ENABLED and
CLOUDWATCH_NAMESPACE are read on each call, so values loaded from .env.local
by load_settings() apply. Metrics never affect message handling: a failed
PutMetricData is logged and dropped.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .aws_clients import get_cloudwatch

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "OrderNotifications"

MESSAGES_PROCESSED = "MessagesProcessed"
MESSAGES_FAILED = "MessagesFailed"
DLQ_MESSAGES_RETRIED = "DLQMessagesRetried"
DLQ_RETRY_FAILURES = "DLQRetryFailures"

# PutMetricData limit
MAX_METRICS_PER_REQUEST = 20


def metrics_enabled() -> bool:
    return os.environ.get("METRICS_ENABLED", "false").lower() == "true"


def namespace() -> str:
    return os.environ.get("CLOUDWATCH_NAMESPACE") or DEFAULT_NAMESPACE


def _to_datum(metric: Dict[str, Any], timestamp: datetime) -> Dict[str, Any]:
    datum = {
        "MetricName": metric["metric_name"],
        "Value": metric.get("value", 1.0),
        "Unit": metric.get("unit") or "Count",
        "Timestamp": timestamp,
    }
    if metric.get("dimensions"):
        datum["Dimensions"] = [
            {"Name": name, "Value": value} for name, value in metric["dimensions"].items()
        ]
    return datum


def emit_metric(
    metric_name: str,
    value: float = 1.0,
    unit: str = "Count",
    dimensions: Optional[Dict[str, str]] = None,
) -> None:
    """
    Emit a single metric.

    Example:
        emit_metric(MESSAGES_FAILED, dimensions={"Reason": "decode_failed"})
    """
    emit_batch_metrics([
        {"metric_name": metric_name, "value": value, "unit": unit, "dimensions": dimensions},
    ])


def emit_batch_metrics(metrics: Iterable[Dict[str, Any]]) -> None:
    """
    Emit metrics given as dicts with metric_name and optional value, unit
    and dimensions. Sent in chunks of MAX_METRICS_PER_REQUEST.
    """
    if not metrics_enabled():
        return

    now = datetime.now(timezone.utc)
    data = [_to_datum(metric, now) for metric in metrics]
    if not data:
        return

    try:
        cloudwatch = get_cloudwatch()
        target = namespace()
        for start in range(0, len(data), MAX_METRICS_PER_REQUEST):
            cloudwatch.put_metric_data(
                Namespace=target,
                MetricData=data[start : start + MAX_METRICS_PER_REQUEST],
            )
    except Exception as e:
        logger.warning(f"Failed to emit {len(data)} metrics: {e}")
        return

    logger.debug(f"Emitted {len(data)} metrics", extra={"namespace": target})
