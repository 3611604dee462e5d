"""Monitoring: Prometheus metrics."""

from .metrics import (
    chat_merges_total,
    gateway_requests_total,
    record_chat_merge,
    record_gateway_request,
)

__all__ = [
    "chat_merges_total",
    "gateway_requests_total",
    "record_chat_merge",
    "record_gateway_request",
]
