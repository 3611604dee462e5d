"""
Contact Identity Module

JID classification and canonicalization used by chat deduplication and
message merging.
"""

from .addresses import (
    AddressKind,
    NormalizedAddress,
    classify,
    is_group_or_broadcast,
    is_linked,
    is_standard,
    normalize,
    normalize_brazilian_number,
    normalize_jid,
    split_jid,
    variations,
)

__all__ = [
    "AddressKind",
    "NormalizedAddress",
    "classify",
    "is_group_or_broadcast",
    "is_linked",
    "is_standard",
    "normalize",
    "normalize_brazilian_number",
    "normalize_jid",
    "split_jid",
    "variations",
]
