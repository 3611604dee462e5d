"""
Gateway instance naming.

Instances live in one shared gateway and are namespaced per owner:
``<user_id>_<display_name>``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GatewayInstance:
    """One gateway-managed WhatsApp account of a user."""

    full_name: str
    display_name: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {**self.raw, "name": self.display_name, "instanceName": self.display_name}


def prefixed_instance_name(user_id: str, name: str) -> str:
    """Full gateway name for a user-facing instance name."""
    return f"{user_id}_{name}"


def strip_user_prefix(instance_name: str, user_id: str) -> str:
    prefix = f"{user_id}_"
    if instance_name.startswith(prefix):
        return instance_name[len(prefix):]
    return instance_name


def instance_name_of(raw: dict[str, Any]) -> str:
    value = raw.get("name") or raw.get("instanceName") or ""
    return value if isinstance(value, str) else ""


def select_user_instances(raw_instances: Any, user_id: str) -> list[GatewayInstance]:
    """Instances owned by ``user_id``, with the owner prefix stripped for display."""
    if not isinstance(raw_instances, list):
        return []

    prefix = f"{user_id}_"
    selected = []
    for raw in raw_instances:
        if not isinstance(raw, dict):
            continue
        full_name = instance_name_of(raw)
        if not full_name.startswith(prefix):
            continue
        selected.append(
            GatewayInstance(
                full_name=full_name,
                display_name=strip_user_prefix(full_name, user_id),
                raw=raw,
            )
        )
    return selected
