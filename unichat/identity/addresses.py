"""
JID Classification and Normalization

The gateway emits the same human contact under several JID spellings:

- ``5511988887777@s.whatsapp.net``  canonical phone JID (13 digits)
- ``551188887777@s.whatsapp.net``   legacy Brazilian JID, missing the 9th digit
- ``5511988887777:12@lid``          linked identifier carrying the phone number
- ``209876543210987@lid``           opaque linked identifier (no phone)

Everything here is a pure function of the JID string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

STANDARD_DOMAIN = "@s.whatsapp.net"
LINKED_DOMAIN = "@lid"
GROUP_DOMAIN = "@g.us"
BROADCAST_JID = "status@broadcast"

# Brazilian mobile numbers:
#   +55 AA 9XXXX-XXXX  (13 digits, canonical)
#   +55 AA XXXX-XXXX   (12 digits, legacy)
BRAZIL_COUNTRY_CODE = "55"
BRAZIL_LEGACY_LENGTH = 12
BRAZIL_CANONICAL_LENGTH = 13
BRAZIL_EXTRA_DIGIT = "9"
# Country code + area code
_BRAZIL_PREFIX_LENGTH = 4

_PHONE_RE = re.compile(r"^\d{10,15}$")


class AddressKind(str, Enum):
    """Kind of a JID, decided by its domain suffix."""

    STANDARD = "standard"
    LINKED = "linked"
    GROUP = "group"
    BROADCAST = "broadcast"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class NormalizedAddress:
    """Result of normalizing a JID.

    ``resolved`` is False only for linked JIDs that could not be mapped to a
    phone number. It is informational: chat deduplication decides what is
    still pending from the address kind and the keys already held by
    standard chats.
    """

    address: str
    resolved: bool = True


def classify(jid: str | None) -> AddressKind:
    if not isinstance(jid, str) or not jid:
        return AddressKind.UNKNOWN
    if jid == BROADCAST_JID:
        return AddressKind.BROADCAST
    if jid.endswith(STANDARD_DOMAIN):
        return AddressKind.STANDARD
    if jid.endswith(LINKED_DOMAIN):
        return AddressKind.LINKED
    if jid.endswith(GROUP_DOMAIN):
        return AddressKind.GROUP
    return AddressKind.UNKNOWN


def is_standard(jid: str | None) -> bool:
    return classify(jid) is AddressKind.STANDARD


def is_linked(jid: str | None) -> bool:
    return classify(jid) is AddressKind.LINKED


def is_group_or_broadcast(jid: str | None) -> bool:
    """Group chats and broadcast lists are excluded everywhere (1-to-1 only)."""
    return classify(jid) in (AddressKind.GROUP, AddressKind.BROADCAST)


def split_jid(jid: str) -> tuple[str, str]:
    """
    Split a JID into ``(local, domain)``; domain keeps its ``@``.

    For linked JIDs the ``:device`` qualifier is stripped from the local part.
    A JID without ``@`` comes back as ``(jid, "")``.
    """
    at_idx = jid.find("@")
    if at_idx < 0:
        return jid, ""
    local = jid[:at_idx]
    domain = jid[at_idx:]
    if domain == LINKED_DOMAIN:
        local = local.split(":", 1)[0]
    return local, domain


def normalize_brazilian_number(number: str) -> str:
    """Insert the 9th digit into a 12-digit Brazilian number.

    Non-Brazilian and already-canonical numbers are returned unchanged.
    """
    if not number.startswith(BRAZIL_COUNTRY_CODE):
        return number
    if len(number) == BRAZIL_LEGACY_LENGTH:
        return f"{number[:_BRAZIL_PREFIX_LENGTH]}{BRAZIL_EXTRA_DIGIT}{number[_BRAZIL_PREFIX_LENGTH:]}"
    return number


def normalize(jid: str) -> NormalizedAddress:
    """
    Canonicalize a JID for deduplication.

    Standard JIDs get the Brazilian rule applied. Linked JIDs of the form
    ``phone:device@lid`` are re-tagged as the standard JID of that phone so
    they unify with the real standard chat. Opaque linked JIDs come back
    unchanged and unresolved. Group and broadcast JIDs are never touched.
    """
    if not jid or "@" not in jid:
        return NormalizedAddress(jid)

    kind = classify(jid)
    local, domain = split_jid(jid)

    if kind is AddressKind.LINKED:
        raw_local = jid[: jid.find("@")]
        # Older clients emit `phone:device@lid`. Newer ones use opaque ids
        # with no colon that can't be mapped to a phone number.
        if ":" in raw_local and _PHONE_RE.fullmatch(local):
            return NormalizedAddress(f"{normalize_brazilian_number(local)}{STANDARD_DOMAIN}")
        return NormalizedAddress(jid, resolved=False)

    if kind is not AddressKind.STANDARD:
        return NormalizedAddress(jid)

    return NormalizedAddress(f"{normalize_brazilian_number(local)}{domain}")


def normalize_jid(jid: str) -> str:
    return normalize(jid).address


def variations(jid: str) -> list[str]:
    """
    All plausible spellings of a standard JID, the input first.

    Brazilian numbers yield both the 12- and 13-digit forms; anything else
    yields ``[jid]``.
    """
    if not jid or "@" not in jid:
        return [jid]
    number, domain = split_jid(jid)
    if domain != STANDARD_DOMAIN or not number.startswith(BRAZIL_COUNTRY_CODE):
        return [jid]

    result = [jid]
    prefix = number[:_BRAZIL_PREFIX_LENGTH]
    if len(number) == BRAZIL_CANONICAL_LENGTH and number[_BRAZIL_PREFIX_LENGTH] == BRAZIL_EXTRA_DIGIT:
        result.append(f"{prefix}{number[_BRAZIL_PREFIX_LENGTH + 1:]}{domain}")
    elif len(number) == BRAZIL_LEGACY_LENGTH:
        result.append(f"{prefix}{BRAZIL_EXTRA_DIGIT}{number[_BRAZIL_PREFIX_LENGTH:]}{domain}")
    return result
