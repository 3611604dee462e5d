"""
Instance Fan-out Aggregator

Collects the chat lists of every instance of a user concurrently, then
deduplicates and resolves them into one list sorted by recent activity.
A failing instance only marks itself disconnected.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from unichat.chats.contact_lookup import ContactLookup, resolve_unmatched_linked
from unichat.chats.dedupe import dedupe_chats
from unichat.chats.types import ChatEntry, raw_jid
from unichat.gateway.instances import GatewayInstance
from unichat.gateway.results import BranchResult, settle
from unichat.identity import is_group_or_broadcast

logger = structlog.get_logger()


class ChatGateway(ContactLookup, Protocol):
    async def list_chats(self, instance_full_name: str) -> Any: ...


@dataclass(frozen=True)
class InstanceStatus:
    name: str
    connected: bool


@dataclass
class InstanceChats:
    """Outcome of one instance's chat-list branch."""

    name: str
    connected: bool
    chats: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class AggregatedChats:
    chats: list[ChatEntry]
    instances: list[InstanceStatus]

    @property
    def total_instances(self) -> int:
        return len(self.instances)

    @property
    def connected_instances(self) -> int:
        return sum(1 for status in self.instances if status.connected)


def tag_individual_chats(chats: list[Any], instance_name: str) -> list[dict[str, Any]]:
    """Drop groups and broadcasts, tag the rest with the instance display name."""
    return [
        {**chat, "instanceName": instance_name}
        for chat in chats
        if isinstance(chat, dict) and not is_group_or_broadcast(raw_jid(chat))
    ]


def instance_chats_from_result(
    instance: GatewayInstance,
    result: BranchResult[Any],
) -> InstanceChats:
    if not result.ok:
        return InstanceChats(name=instance.display_name, connected=False)

    payload = result.value
    if not isinstance(payload, list):
        # Reachable but malformed: treat as empty
        return InstanceChats(name=instance.display_name, connected=True)

    return InstanceChats(
        name=instance.display_name,
        connected=True,
        chats=tag_individual_chats(payload, instance.display_name),
    )


class ChatAggregator:
    """Builds the unified chat list of one user."""

    def __init__(self, gateway: ChatGateway):
        self.gateway = gateway

    async def fetch_instance_chats(self, instances: list[GatewayInstance]) -> list[InstanceChats]:
        results = await asyncio.gather(
            *(
                settle(self.gateway.list_chats(inst.full_name), instance=inst.display_name)
                for inst in instances
            )
        )
        return [
            instance_chats_from_result(inst, result)
            for inst, result in zip(instances, results)
        ]

    async def get_aggregated_chats(
        self,
        effective_user_id: str,
        instances: list[GatewayInstance],
    ) -> AggregatedChats:
        per_instance = await self.fetch_instance_chats(instances)

        raw_chats = [chat for outcome in per_instance for chat in outcome.chats]
        statuses = [InstanceStatus(name=o.name, connected=o.connected) for o in per_instance]

        deduped = dedupe_chats(raw_chats)
        chats = deduped.chats

        if deduped.unmatched_linked:
            await resolve_unmatched_linked(
                self.gateway,
                chats,
                deduped.unmatched_linked,
                instances,
            )

        chats.sort(key=lambda entry: entry.timestamp, reverse=True)

        logger.info(
            "Aggregated chats",
            user_id=effective_user_id,
            instances=len(instances),
            connected=sum(1 for s in statuses if s.connected),
            raw_chats=len(raw_chats),
            chats=len(chats),
        )
        return AggregatedChats(chats=chats, instances=statuses)
