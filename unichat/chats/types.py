"""
Chat aggregation types.

A ``ChatEntry`` is the merge of one or more raw gateway chat records that
share a ``CanonicalKey``. Entries live for a single request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from unichat.chats.timestamps import chat_timestamp
from unichat.identity import is_standard


class CanonicalKey(NamedTuple):
    """Deduplication unit: normalized JID within one instance."""

    address: str
    instance_name: str


def raw_jid(chat: dict[str, Any]) -> str:
    """JID of a raw gateway chat record (``remoteJid``, else ``id``)."""
    value = chat.get("remoteJid") or chat.get("id") or ""
    return value if isinstance(value, str) else ""


def unread_count(chat: dict[str, Any]) -> int:
    try:
        return int(chat.get("unreadCount") or 0)
    except (TypeError, ValueError):
        return 0


@dataclass
class ChatEntry:
    """One unique contact within one instance."""

    key: CanonicalKey
    jid: str
    payload: dict[str, Any]
    all_addresses: list[str] = field(default_factory=list)
    unread_count: int = 0

    @classmethod
    def from_raw(cls, key: CanonicalKey, chat: dict[str, Any]) -> ChatEntry:
        jid = raw_jid(chat)
        return cls(
            key=key,
            jid=jid,
            payload=dict(chat),
            all_addresses=[jid],
            unread_count=unread_count(chat),
        )

    @property
    def instance_name(self) -> str:
        return self.key.instance_name

    @property
    def timestamp(self) -> int:
        return chat_timestamp(self.payload)

    def add_address(self, jid: str) -> None:
        if jid not in self.all_addresses:
            self.all_addresses.append(jid)

    def has_address(self, candidates: list[str]) -> bool:
        return self.jid in candidates or any(a in candidates for a in self.all_addresses)

    def prefer_jid(self, jid: str) -> None:
        """Promote a standard JID to representative for display."""
        if is_standard(jid) and not is_standard(self.jid):
            self.jid = jid

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.payload,
            "remoteJid": self.jid,
            "instanceName": self.instance_name,
            "unreadCount": self.unread_count,
            "allJids": list(self.all_addresses),
        }


@dataclass
class DedupeResult:
    """Merged chats plus linked JIDs left for an external contact lookup."""

    chats: list[ChatEntry] = field(default_factory=list)
    unmatched_linked: dict[str, list[str]] = field(default_factory=dict)
