"""
Chat activity timestamp extraction.

The gateway returns activity under ``lastMessage.messageTimestamp`` and/or
``updatedAt``; older API versions used ``lastMsgTimestamp`` or
``conversationTimestamp``. The same fallback chain is used for every
"more recent" comparison and for the final sort.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from unichat.kernel.time import parse_iso8601, to_epoch_seconds

LEGACY_TIMESTAMP_FIELDS = ("lastMsgTimestamp", "conversationTimestamp")

_LEADING_INT_RE = re.compile(r"\d+")


def _coerce_seconds(value: Any) -> int | None:
    """Seconds from a number, numeric string or protobuf-style ``{low, high}`` pair."""
    if not value:
        return None
    if isinstance(value, Mapping):
        try:
            seconds = int(value.get("low"))
        except (TypeError, ValueError):
            return None
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        seconds = int(value)
    else:
        match = _LEADING_INT_RE.match(str(value).strip())
        if not match:
            return None
        seconds = int(match.group(0))
    return seconds if seconds > 0 else None


def _updated_at_seconds(value: Any) -> int | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return to_epoch_seconds(value)
    try:
        return to_epoch_seconds(parse_iso8601(str(value)))
    except ValueError:
        return None


def chat_timestamp(chat: Mapping[str, Any]) -> int:
    """Last activity of a raw chat record in Unix seconds, 0 when unknown."""
    last_message = chat.get("lastMessage")
    if isinstance(last_message, Mapping):
        seconds = _coerce_seconds(last_message.get("messageTimestamp"))
        if seconds is not None:
            return seconds

    seconds = _updated_at_seconds(chat.get("updatedAt"))
    if seconds is not None:
        return seconds

    for field in LEGACY_TIMESTAMP_FIELDS:
        seconds = _coerce_seconds(chat.get(field))
        if seconds is not None:
            return seconds

    return 0
