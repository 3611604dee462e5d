"""Per-conversation message merging across JID variants."""

from .merge import (
    MessageMergeResolver,
    build_query_set,
    merge_message_records,
    message_key_id,
)

__all__ = [
    "MessageMergeResolver",
    "build_query_set",
    "merge_message_records",
    "message_key_id",
]
