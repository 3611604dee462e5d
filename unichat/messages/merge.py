"""
Message Merge Resolver

A conversation's history can be split across JID spellings: Brazilian
9th-digit variants, and ``@lid`` JIDs under which the gateway stores
self-sent messages. Every known spelling is queried in parallel and the
results are merged by message key id.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Any, Protocol

import structlog

from unichat.gateway.results import settle
from unichat.identity import variations

logger = structlog.get_logger()


class MessageGateway(Protocol):
    async def list_messages(self, instance_full_name: str, remote_jid: str) -> list[dict[str, Any]]: ...


def build_query_set(conversation_address: str, extra_addresses: Iterable[str] = ()) -> list[str]:
    """Ordered, duplicate-free JIDs to query for one conversation."""
    query: dict[str, None] = dict.fromkeys(variations(conversation_address))
    for raw in extra_addresses:
        address = raw.strip()
        if not address:
            continue
        query[address] = None
        for variant in variations(address):
            query[variant] = None
    return list(query)


def message_key_id(record: Any) -> str | None:
    if not isinstance(record, dict):
        return None
    key = record.get("key")
    key_id = key.get("id") if isinstance(key, dict) else None
    return key_id or record.get("id") or None


def merge_message_records(record_lists: Iterable[list[dict[str, Any]]]) -> list[dict[str, Any]]:
    """First occurrence per key id wins; records without an id are always kept."""
    seen: set[str] = set()
    merged: list[dict[str, Any]] = []
    for records in record_lists:
        for record in records:
            key_id = message_key_id(record)
            if key_id:
                if key_id in seen:
                    continue
                seen.add(key_id)
            merged.append(record)
    return merged


class MessageMergeResolver:
    """Fetches one conversation under every JID variant and merges it."""

    def __init__(self, gateway: MessageGateway):
        self.gateway = gateway

    async def get_merged_messages(
        self,
        instance_full_name: str,
        conversation_address: str,
        extra_addresses: Iterable[str] = (),
    ) -> list[dict[str, Any]]:
        addresses = build_query_set(conversation_address, extra_addresses)

        results = await asyncio.gather(
            *(
                settle(
                    self.gateway.list_messages(instance_full_name, address),
                    instance=instance_full_name,
                    remote_jid=address,
                )
                for address in addresses
            )
        )

        merged = merge_message_records(result.value_or([]) for result in results)
        logger.info(
            "Merged conversation messages",
            instance=instance_full_name,
            addresses=len(addresses),
            failed=sum(1 for r in results if not r.ok),
            messages=len(merged),
        )
        return merged
