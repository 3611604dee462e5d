"""Messaging gateway access: HTTP client, instance naming, fan-out results."""

from .client import GatewayClient, GatewayRequestError, extract_message_records
from .instances import (
    GatewayInstance,
    prefixed_instance_name,
    select_user_instances,
    strip_user_prefix,
)
from .results import BranchResult, settle

__all__ = [
    "BranchResult",
    "GatewayClient",
    "GatewayInstance",
    "GatewayRequestError",
    "extract_message_records",
    "prefixed_instance_name",
    "select_user_instances",
    "settle",
    "strip_user_prefix",
]
