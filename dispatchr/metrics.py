"""Prometheus metrics for dispatcher sessions."""
from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

ACTIONS_DISPATCHED = Counter(
    "dispatchr_actions_total",
    "Actions taken off the queue and handed to stores",
    labelnames=("action",),
)

ACTION_FAILURES = Counter(
    "dispatchr_action_failures_total",
    "Actions that settled with an error",
    labelnames=("action", "reason"),
)

ACTION_LATENCY = Histogram(
    "dispatchr_action_latency_ms",
    "Time from dequeue until every store finished handling the action (milliseconds)",
    labelnames=("action",),
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000),
)

QUEUE_DEPTH = Gauge(
    "dispatchr_queue_depth",
    "Actions waiting behind the one currently being handled",
)

HANDLER_TIMEOUTS = Counter(
    "dispatchr_handler_timeouts_total",
    "Store handlers failed for exceeding the handler timeout",
    labelnames=("store",),
)
