from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from unichat.gateway import GatewayRequestError


def status_error(operation: str, status_code: int = 500) -> GatewayRequestError:
    return GatewayRequestError(operation=operation, status_code=status_code)


def network_error(message: str = "connection refused") -> httpx.ConnectError:
    return httpx.ConnectError(message)


@dataclass
class FakeGateway:
    """
    In-memory fake of the messaging gateway.

    Values that are exceptions are raised instead of returned, which is how
    tests simulate a disconnected instance or a failing JID query.
    """

    instances: Any = field(default_factory=list)
    chats: dict[str, Any] = field(default_factory=dict)
    messages: dict[tuple[str, str], Any] = field(default_factory=dict)
    contacts: dict[str, Any] = field(default_factory=dict)
    calls: list[tuple[str, tuple[str, ...]]] = field(default_factory=list)

    @staticmethod
    def _resolve(value: Any) -> Any:
        if isinstance(value, BaseException):
            raise value
        return value

    async def fetch_instances(self) -> Any:
        self.calls.append(("fetch_instances", ()))
        return self._resolve(self.instances)

    async def list_chats(self, instance_full_name: str) -> Any:
        self.calls.append(("list_chats", (instance_full_name,)))
        return self._resolve(self.chats.get(instance_full_name, []))

    async def list_messages(self, instance_full_name: str, remote_jid: str) -> Any:
        self.calls.append(("list_messages", (instance_full_name, remote_jid)))
        return self._resolve(self.messages.get((instance_full_name, remote_jid), []))

    async def lookup_contacts(self, instance_full_name: str) -> Any:
        self.calls.append(("lookup_contacts", (instance_full_name,)))
        return self._resolve(self.contacts.get(instance_full_name, []))

    def calls_to(self, operation: str) -> list[tuple[str, ...]]:
        return [args for op, args in self.calls if op == operation]
