"""
Contact-lookup pass for unresolved linked identifiers.

The gateway's contact list carries the authoritative ``@lid`` to phone JID
mapping (``lid`` / ``phoneNumber``). Resolved linked JIDs are attached to the
matching chat's address set so later message fetches query them too. Only
identity is merged here, never unread counts or activity.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import structlog

from unichat.chats.types import ChatEntry
from unichat.gateway.instances import GatewayInstance
from unichat.gateway.results import settle
from unichat.identity import is_standard, variations
from unichat.monitoring import record_chat_merge

logger = structlog.get_logger()


class ContactLookup(Protocol):
    async def lookup_contacts(self, instance_full_name: str) -> list[dict[str, Any]]: ...


def build_linked_mapping(contacts: list[dict[str, Any]]) -> dict[str, str]:
    """Map linked JID -> standard JID from gateway contact records."""
    mapping: dict[str, str] = {}
    for contact in contacts:
        if not isinstance(contact, dict):
            continue
        lid = contact.get("lid") or contact.get("lidJid")
        phone = contact.get("phoneNumber")
        if not phone:
            candidate = contact.get("id") or contact.get("remoteJid")
            if is_standard(candidate):
                phone = candidate
        if isinstance(lid, str) and lid and isinstance(phone, str) and phone:
            mapping[lid] = phone
    return mapping


def attach_linked_addresses(
    chats: list[ChatEntry],
    instance_name: str,
    linked_jids: list[str],
    mapping: dict[str, str],
) -> int:
    """Attach each mapped linked JID to its chat; returns how many were attached."""
    attached = 0
    instance_chats = [c for c in chats if c.instance_name == instance_name]
    for linked_jid in linked_jids:
        phone_jid = mapping.get(linked_jid)
        if not phone_jid:
            logger.info(
                "No contact mapping for linked JID",
                instance=instance_name,
                linked_jid=linked_jid,
            )
            continue

        phone_variations = variations(phone_jid)
        chat = next((c for c in instance_chats if c.has_address(phone_variations)), None)
        if chat is None:
            logger.info(
                "Mapped linked JID has no matching chat",
                instance=instance_name,
                linked_jid=linked_jid,
                phone_jid=phone_jid,
            )
            continue

        chat.add_address(linked_jid)
        attached += 1
    return attached


async def resolve_unmatched_linked(
    lookup: ContactLookup,
    chats: list[ChatEntry],
    unmatched_linked: dict[str, list[str]],
    instances: list[GatewayInstance],
) -> int:
    """
    Resolve unmatched linked JIDs with one contact lookup per instance.

    Lookups run concurrently; a failed lookup leaves that instance's linked
    JIDs unmerged.
    """
    by_display_name = {inst.display_name: inst for inst in instances}
    targets = [
        (by_display_name[name], jids)
        for name, jids in unmatched_linked.items()
        if name in by_display_name and jids
    ]
    if not targets:
        return 0

    results = await asyncio.gather(
        *(
            settle(lookup.lookup_contacts(inst.full_name), instance=inst.display_name)
            for inst, _ in targets
        )
    )

    attached = 0
    for (inst, jids), result in zip(targets, results):
        if not result.ok:
            continue
        mapping = build_linked_mapping(result.value_or([]))
        attached += attach_linked_addresses(chats, inst.display_name, jids, mapping)

    record_chat_merge("contact_lookup", attached)
    return attached
