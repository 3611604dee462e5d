"""
Prometheus Metrics

Counters for gateway traffic and chat deduplication, exported at /metrics.
"""

from prometheus_client import Counter

gateway_requests_total = Counter(
    "unichat_gateway_requests_total",
    "Total messaging gateway requests by operation and outcome",
    ["operation", "outcome"],
)

chat_merges_total = Counter(
    "unichat_chat_merges_total",
    "Raw chat records folded into another entry, by resolver strategy",
    ["strategy"],
)


def record_gateway_request(operation: str, outcome: str) -> None:
    gateway_requests_total.labels(operation=operation, outcome=outcome).inc()


def record_chat_merge(strategy: str, count: int = 1) -> None:
    if count > 0:
        chat_merges_total.labels(strategy=strategy).inc(count)
