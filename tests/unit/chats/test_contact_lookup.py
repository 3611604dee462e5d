"""
Unit tests for the contact-lookup pass that resolves opaque linked JIDs.
"""

import pytest

from tests.support.gateway import FakeGateway, status_error
from unichat.chats.contact_lookup import (
    attach_linked_addresses,
    build_linked_mapping,
    resolve_unmatched_linked,
)
from unichat.chats.dedupe import dedupe_chats
from unichat.gateway import GatewayInstance

pytestmark = pytest.mark.unit

CANONICAL = "5511988887777@s.whatsapp.net"
LEGACY = "551188887777@s.whatsapp.net"
OPAQUE_LID = "209876543210987@lid"

SALES = GatewayInstance(full_name="user1_sales", display_name="sales")
SUPPORT = GatewayInstance(full_name="user1_support", display_name="support")


def entries(*raw):
    return dedupe_chats(list(raw)).chats


class TestBuildLinkedMapping:
    def test_lid_to_phone_number(self):
        mapping = build_linked_mapping([{"lid": OPAQUE_LID, "phoneNumber": CANONICAL}])
        assert mapping == {OPAQUE_LID: CANONICAL}

    def test_lid_jid_alias_and_standard_id_fallback(self):
        mapping = build_linked_mapping([{"lidJid": OPAQUE_LID, "id": LEGACY}])
        assert mapping == {OPAQUE_LID: LEGACY}

    def test_non_standard_id_is_not_a_phone(self):
        assert build_linked_mapping([{"lid": OPAQUE_LID, "id": OPAQUE_LID}]) == {}

    def test_skips_incomplete_and_malformed(self):
        assert build_linked_mapping([{"phoneNumber": CANONICAL}, "junk", {"lid": OPAQUE_LID}]) == {}

    def test_skips_non_string_fields(self):
        contacts = [
            {"lid": {"x": 1}, "phoneNumber": CANONICAL},
            {"lid": OPAQUE_LID, "phoneNumber": 5511988887777},
            {"lid": "111@lid", "phoneNumber": LEGACY},
        ]
        assert build_linked_mapping(contacts) == {"111@lid": LEGACY}


class TestAttachLinkedAddresses:
    def test_matches_through_brazilian_variation(self):
        chats = entries({"remoteJid": LEGACY, "instanceName": "sales", "unreadCount": 2})

        attached = attach_linked_addresses(chats, "sales", [OPAQUE_LID], {OPAQUE_LID: CANONICAL})

        assert attached == 1
        assert chats[0].all_addresses == [LEGACY, OPAQUE_LID]
        assert chats[0].unread_count == 2

    def test_other_instance_not_touched(self):
        chats = entries({"remoteJid": CANONICAL, "instanceName": "support"})

        assert attach_linked_addresses(chats, "sales", [OPAQUE_LID], {OPAQUE_LID: CANONICAL}) == 0
        assert chats[0].all_addresses == [CANONICAL]

    def test_unmapped_jid_left_alone(self):
        chats = entries({"remoteJid": CANONICAL, "instanceName": "sales"})
        assert attach_linked_addresses(chats, "sales", [OPAQUE_LID], {}) == 0


@pytest.mark.asyncio
class TestResolveUnmatchedLinked:
    async def test_one_lookup_per_instance_with_unmatched(self):
        gateway = FakeGateway(
            contacts={"user1_sales": [{"lid": OPAQUE_LID, "phoneNumber": CANONICAL}]}
        )
        chats = entries(
            {"remoteJid": CANONICAL, "instanceName": "sales", "unreadCount": 1},
            {"remoteJid": CANONICAL, "instanceName": "support"},
        )

        attached = await resolve_unmatched_linked(
            gateway, chats, {"sales": [OPAQUE_LID]}, [SALES, SUPPORT]
        )

        assert attached == 1
        assert gateway.calls_to("lookup_contacts") == [("user1_sales",)]
        sales = next(c for c in chats if c.instance_name == "sales")
        assert OPAQUE_LID in sales.all_addresses
        assert sales.unread_count == 1

    async def test_failed_lookup_is_isolated(self):
        other_lid = "111222333444555@lid"
        gateway = FakeGateway(
            contacts={
                "user1_sales": status_error("lookup_contacts", 503),
                "user1_support": [{"lid": other_lid, "phoneNumber": CANONICAL}],
            }
        )
        chats = entries(
            {"remoteJid": CANONICAL, "instanceName": "sales"},
            {"remoteJid": CANONICAL, "instanceName": "support"},
        )

        attached = await resolve_unmatched_linked(
            gateway,
            chats,
            {"sales": [OPAQUE_LID], "support": [other_lid]},
            [SALES, SUPPORT],
        )

        assert attached == 1
        support = next(c for c in chats if c.instance_name == "support")
        assert other_lid in support.all_addresses

    async def test_unknown_instance_is_skipped(self):
        gateway = FakeGateway()
        attached = await resolve_unmatched_linked(gateway, [], {"ghost": [OPAQUE_LID]}, [SALES])

        assert attached == 0
        assert gateway.calls == []
