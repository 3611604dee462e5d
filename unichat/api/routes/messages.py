"""
Message API Routes

- GET /messages/chats: unified 1-to-1 chat list across all instances
- GET /messages/{instance_name}/{remote_jid}: merged conversation history
"""

from typing import Any
from urllib.parse import unquote

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from unichat.access import InstancePermissionChecker, Principal, ensure_instance_permission
from unichat.api.deps import (
    get_chat_aggregator,
    get_gateway_client,
    get_message_resolver,
    get_permission_checker,
    get_principal,
)
from unichat.api.routes.instances import list_user_instances
from unichat.chats import ChatAggregator
from unichat.gateway import GatewayClient, prefixed_instance_name
from unichat.messages import MessageMergeResolver

logger = structlog.get_logger()

router = APIRouter(prefix="/messages", tags=["messages"])


# =============================================================================
# Response Models
# =============================================================================


class InstanceStatusResponse(BaseModel):
    name: str
    connected: bool


class ChatListResponse(BaseModel):
    chats: list[dict[str, Any]]
    instances: list[InstanceStatusResponse]
    totalInstances: int
    connectedInstances: int


class MessageListResponse(BaseModel):
    messages: list[dict[str, Any]]
    total: int
    pages: int = 1
    currentPage: int = 1


def parse_all_jids(value: str | None) -> list[str]:
    """Split the comma-separated ``allJids`` query parameter."""
    if not value:
        return []
    jids = []
    for raw in value.split(","):
        decoded = unquote(raw.strip())
        if decoded:
            jids.append(decoded)
    return jids


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/chats", response_model=ChatListResponse)
async def get_chats(
    principal: Principal = Depends(get_principal),
    gateway: GatewayClient = Depends(get_gateway_client),
    checker: InstancePermissionChecker = Depends(get_permission_checker),
    aggregator: ChatAggregator = Depends(get_chat_aggregator),
):
    """
    Aggregate recent chats from every instance of the caller.

    Chats are tagged with the instance display name, deduplicated across
    JID spellings and sorted by most recent activity.
    """
    instances = await list_user_instances(gateway, principal, checker)
    result = await aggregator.get_aggregated_chats(principal.effective_user_id, instances)

    return ChatListResponse(
        chats=[entry.to_dict() for entry in result.chats],
        instances=[
            InstanceStatusResponse(name=s.name, connected=s.connected)
            for s in result.instances
        ],
        totalInstances=result.total_instances,
        connectedInstances=result.connected_instances,
    )


@router.get("/{instance_name}/{remote_jid}", response_model=MessageListResponse)
async def get_messages(
    instance_name: str,
    remote_jid: str,
    all_jids: str | None = Query(default=None, alias="allJids"),
    principal: Principal = Depends(get_principal),
    checker: InstancePermissionChecker = Depends(get_permission_checker),
    resolver: MessageMergeResolver = Depends(get_message_resolver),
):
    """
    Fetch one conversation merged across every JID variant.

    ``allJids`` carries extra JIDs discovered during chat deduplication
    (e.g. ``@lid`` JIDs), comma-separated.
    """
    await ensure_instance_permission(principal, instance_name, checker)

    full_name = prefixed_instance_name(principal.effective_user_id, instance_name)
    messages = await resolver.get_merged_messages(
        full_name,
        unquote(remote_jid),
        parse_all_jids(all_jids),
    )
    return MessageListResponse(messages=messages, total=len(messages))
