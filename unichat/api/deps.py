"""
FastAPI dependencies: caller principal, permission checker, gateway access.

Trust boundary: ``X-User-Id`` and ``X-Parent-User-Id`` are taken as asserted
by the authenticating proxy in front of this service and are not verified
here. The service must not be reachable except through that proxy, and a
deployment with sub-users must install a real checker on
``app.state.permission_checker``; the default ``AllowAllPermissions`` grants
every sub-user all of its parent's instances.
"""

import httpx
from fastapi import Depends, Header, Request

from unichat.access import AllowAllPermissions, InstancePermissionChecker, Principal
from unichat.chats import ChatAggregator
from unichat.config import Settings, get_settings
from unichat.gateway import GatewayClient
from unichat.kernel.errors import UnauthorizedError
from unichat.messages import MessageMergeResolver


async def get_principal(
    x_user_id: str | None = Header(default=None),
    x_parent_user_id: str | None = Header(default=None),
) -> Principal:
    """
    Caller identity as asserted by the upstream auth layer.
    """
    if not x_user_id:
        raise UnauthorizedError()
    return Principal(user_id=x_user_id, parent_user_id=x_parent_user_id or None)


def get_permission_checker(request: Request) -> InstancePermissionChecker:
    checker = getattr(request.app.state, "permission_checker", None)
    return checker or AllowAllPermissions()


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_gateway_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> GatewayClient:
    # Configuration is checked before touching the shared HTTP client
    settings.require_gateway()
    return GatewayClient.from_settings(settings, get_http_client(request))


def get_chat_aggregator(gateway: GatewayClient = Depends(get_gateway_client)) -> ChatAggregator:
    return ChatAggregator(gateway)


def get_message_resolver(
    gateway: GatewayClient = Depends(get_gateway_client),
) -> MessageMergeResolver:
    return MessageMergeResolver(gateway)
