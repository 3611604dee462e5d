"""
Chat Deduplication Pipeline

Merges raw chat records that denote the same contact within one instance.
Resolution runs as an ordered list of strategies over a shared
``DedupeState``:

1. ``KeyPassResolver``: group by ``CanonicalKey`` (normalized JID + instance).
   Covers Brazilian 9th-digit variants and ``phone:device@lid`` JIDs.
2. ``NameMatchResolver``: fold opaque ``@lid`` entries into a standard entry
   of the same instance whose name or push name matches.
3. ``UnresolvedCollector``: move every still-unresolved ``@lid`` entry into
   ``unmatched_linked`` for the contact-lookup pass.
4. ``SupersededLinkedFilter``: drop linked entries whose key already has a
   standard JID.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from unichat.chats.timestamps import chat_timestamp
from unichat.chats.types import CanonicalKey, ChatEntry, DedupeResult, raw_jid, unread_count
from unichat.identity import is_linked, is_standard, normalize_jid
from unichat.monitoring import record_chat_merge

logger = structlog.get_logger()


@dataclass
class DedupeState:
    """Mutable state shared by the resolver strategies of one request."""

    # Insertion order is the order of first sighting
    entries: dict[CanonicalKey, ChatEntry] = field(default_factory=dict)
    # Keys that received at least one standard JID
    standard_keys: set[CanonicalKey] = field(default_factory=set)
    unmatched_linked: dict[str, list[str]] = field(default_factory=dict)

    def pending_linked(self) -> list[ChatEntry]:
        """Linked entries not co-resident with a standard JID."""
        return [
            entry
            for key, entry in self.entries.items()
            if is_linked(entry.jid) and key not in self.standard_keys
        ]

    def standard_entries(self, instance_name: str) -> list[ChatEntry]:
        return [
            entry
            for entry in self.entries.values()
            if entry.instance_name == instance_name and is_standard(entry.jid)
        ]

    def remove(self, entry: ChatEntry) -> None:
        self.entries.pop(entry.key, None)

    def result(self) -> DedupeResult:
        return DedupeResult(
            chats=list(self.entries.values()),
            unmatched_linked=self.unmatched_linked,
        )


class ChatResolver(Protocol):
    name: str

    def resolve(self, state: DedupeState) -> None: ...


def _display_names(chat: dict[str, Any]) -> tuple[str, str]:
    name = chat.get("name") or ""
    push_name = chat.get("pushName") or ""
    return str(name).strip().lower(), str(push_name).strip().lower()


def names_match(a: dict[str, Any], b: dict[str, Any]) -> bool:
    """Case-insensitive exact equality of name or push name; blanks never match."""
    a_name, a_push = _display_names(a)
    b_name, b_push = _display_names(b)
    return bool((a_name and a_name == b_name) or (a_push and a_push == b_push))


class KeyPassResolver:
    """Group raw chats by canonical key."""

    name = "key"

    def __init__(self, raw_chats: list[dict[str, Any]]):
        self._raw_chats = raw_chats

    def resolve(self, state: DedupeState) -> None:
        merged = 0
        for chat in self._raw_chats:
            jid = raw_jid(chat)
            if not jid:
                continue

            key = CanonicalKey(normalize_jid(jid), chat.get("instanceName") or "")
            if is_standard(jid):
                state.standard_keys.add(key)

            existing = state.entries.get(key)
            if existing is None:
                state.entries[key] = ChatEntry.from_raw(key, chat)
                continue

            self.merge(existing, chat)
            merged += 1

        record_chat_merge(self.name, merged)

    @staticmethod
    def merge(entry: ChatEntry, chat: dict[str, Any]) -> None:
        """Fold one raw record into an entry: newer payload wins, unread sums."""
        jid = raw_jid(chat)
        entry.add_address(jid)
        entry.unread_count += unread_count(chat)

        if chat_timestamp(chat) > entry.timestamp:
            previous_jid = entry.jid
            entry.payload = dict(chat)
            entry.jid = jid
            entry.prefer_jid(previous_jid)

        entry.prefer_jid(jid)


class NameMatchResolver:
    """Fold opaque linked entries into a same-named standard entry."""

    name = "name"

    def resolve(self, state: DedupeState) -> None:
        candidates_by_instance: dict[str, list[ChatEntry]] = {}
        merged = 0

        for linked in state.pending_linked():
            instance = linked.instance_name
            if instance not in candidates_by_instance:
                candidates_by_instance[instance] = state.standard_entries(instance)

            # First match in insertion order wins
            target = next(
                (
                    std
                    for std in candidates_by_instance[instance]
                    if names_match(linked.payload, std.payload)
                ),
                None,
            )
            if target is None:
                continue

            self.fold(target, linked)
            state.remove(linked)
            merged += 1
            logger.debug(
                "Merged linked chat by name",
                instance=instance,
                linked_jid=linked.jid,
                standard_jid=target.jid,
            )

        record_chat_merge(self.name, merged)

    @staticmethod
    def fold(target: ChatEntry, linked: ChatEntry) -> None:
        for jid in linked.all_addresses:
            target.add_address(jid)
        target.unread_count += linked.unread_count

        last_message = linked.payload.get("lastMessage")
        if linked.timestamp > target.timestamp and last_message:
            target.payload["lastMessage"] = last_message


class UnresolvedCollector:
    """Hand still-unresolved linked entries over to the contact lookup."""

    name = "unresolved"

    def resolve(self, state: DedupeState) -> None:
        for linked in state.pending_linked():
            state.unmatched_linked.setdefault(linked.instance_name, []).extend(
                linked.all_addresses
            )
            state.remove(linked)


class SupersededLinkedFilter:
    """Drop linked-only entries whose key also carries a standard JID."""

    name = "superseded"

    def resolve(self, state: DedupeState) -> None:
        for key, entry in list(state.entries.items()):
            if is_linked(entry.jid) and key in state.standard_keys:
                del state.entries[key]


def dedupe_chats(
    raw_chats: list[dict[str, Any]],
    resolvers: list[ChatResolver] | None = None,
) -> DedupeResult:
    """
    Deduplicate raw chats tagged with ``instanceName``.

    Output order is not meaningful; callers sort by activity.
    """
    state = DedupeState()
    pipeline = resolvers or [
        KeyPassResolver(raw_chats),
        NameMatchResolver(),
        UnresolvedCollector(),
        SupersededLinkedFilter(),
    ]
    for resolver in pipeline:
        resolver.resolve(state)

    result = state.result()
    logger.debug(
        "Deduplicated chats",
        raw_count=len(raw_chats),
        merged_count=len(result.chats),
        unmatched_linked=sum(len(v) for v in result.unmatched_linked.values()),
    )
    return result
