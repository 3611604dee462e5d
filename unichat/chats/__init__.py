"""
Chat Aggregation Module

Fan-out over gateway instances, deduplication of chats that denote the
same contact, and linked-identifier resolution.
"""

from .aggregator import AggregatedChats, ChatAggregator, InstanceStatus
from .contact_lookup import resolve_unmatched_linked
from .dedupe import dedupe_chats
from .timestamps import chat_timestamp
from .types import CanonicalKey, ChatEntry, DedupeResult

__all__ = [
    "AggregatedChats",
    "CanonicalKey",
    "ChatAggregator",
    "ChatEntry",
    "DedupeResult",
    "InstanceStatus",
    "chat_timestamp",
    "dedupe_chats",
    "resolve_unmatched_linked",
]
