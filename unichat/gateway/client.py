"""
Messaging Gateway Client

Thin async client for the Evolution API v2 endpoints the engine depends on:

- ``GET  /instance/fetchInstances``
- ``POST /chat/findChats/{instance}``
- ``POST /chat/findMessages/{instance}``
- ``POST /chat/findContacts/{instance}``

No retries: a failed call is reported once and the fan-out layer decides
what a failure means.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from unichat.config import Settings
from unichat.kernel.errors import UpstreamError
from unichat.monitoring import record_gateway_request

logger = structlog.get_logger()


class GatewayRequestError(UpstreamError):
    """Non-success status from the gateway."""

    def __init__(self, *, operation: str, status_code: int, instance: str | None = None):
        super().__init__(
            message=f"Gateway {operation} failed with HTTP {status_code}",
            code="upstream.gateway_status",
            meta={"operation": operation, "upstream_status": status_code, "instance": instance},
        )
        self.operation = operation
        self.upstream_status = status_code


def extract_message_records(data: Any) -> list[dict[str, Any]]:
    """Accept ``{messages: {records}}``, ``{messages: [...]}`` or a bare list."""
    if isinstance(data, dict):
        messages = data.get("messages")
        if isinstance(messages, dict) and isinstance(messages.get("records"), list):
            return messages["records"]
        if isinstance(messages, list):
            return messages
        return []
    if isinstance(data, list):
        return data
    return []


class GatewayClient:
    """Evolution API v2 client bound to one base URL and API key."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        message_page_offset: int = 100,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._client = client
        self._message_page_offset = message_page_offset

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> GatewayClient:
        base_url, api_key = settings.require_gateway()
        return cls(
            base_url,
            api_key,
            client,
            message_page_offset=settings.message_page_offset,
        )

    def _url(self, path: str, instance: str | None = None) -> str:
        url = f"{self.base_url}{path}"
        if instance is not None:
            url = f"{url}/{quote(instance, safe='')}"
        return url

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        instance: str | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        headers = {"apikey": self._api_key}
        try:
            response = await self._client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as e:
            record_gateway_request(operation, "network_error")
            logger.error(
                "Gateway request failed",
                operation=operation,
                instance=instance,
                error=str(e),
            )
            raise

        if not response.is_success:
            record_gateway_request(operation, "status_error")
            logger.warning(
                "Gateway returned non-success status",
                operation=operation,
                instance=instance,
                status_code=response.status_code,
            )
            raise GatewayRequestError(
                operation=operation,
                status_code=response.status_code,
                instance=instance,
            )

        record_gateway_request(operation, "ok")
        return response.json()

    async def fetch_instances(self) -> Any:
        return await self._request(
            "fetch_instances", "GET", self._url("/instance/fetchInstances")
        )

    async def list_chats(self, instance_full_name: str) -> Any:
        """Raw ``findChats`` payload; a list of chat records when well-formed."""
        return await self._request(
            "list_chats",
            "POST",
            self._url("/chat/findChats", instance_full_name),
            instance=instance_full_name,
            json={},
        )

    async def list_messages(self, instance_full_name: str, remote_jid: str) -> list[dict[str, Any]]:
        data = await self._request(
            "list_messages",
            "POST",
            self._url("/chat/findMessages", instance_full_name),
            instance=instance_full_name,
            json={
                "where": {"key": {"remoteJid": remote_jid}},
                "offset": self._message_page_offset,
                "page": 1,
            },
        )
        return extract_message_records(data)

    async def lookup_contacts(self, instance_full_name: str) -> list[dict[str, Any]]:
        data = await self._request(
            "lookup_contacts",
            "POST",
            self._url("/chat/findContacts", instance_full_name),
            instance=instance_full_name,
            json={},
        )
        return data if isinstance(data, list) else []
