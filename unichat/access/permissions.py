"""
Caller identity and sub-user instance permissions.

Authentication and permission storage live outside this service; these
types are the boundary the HTTP layer talks to.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol

from unichat.gateway.instances import GatewayInstance
from unichat.kernel.errors import ForbiddenError


@dataclass(frozen=True)
class Principal:
    """Authenticated caller. Sub-users act on their parent's instances."""

    user_id: str
    parent_user_id: str | None = None

    @property
    def is_sub_user(self) -> bool:
        return bool(self.parent_user_id)

    @property
    def effective_user_id(self) -> str:
        return self.parent_user_id or self.user_id


class InstancePermissionChecker(Protocol):
    async def has_permission_for_instance(
        self,
        sub_user_id: str,
        instance_name: str,
        owner_user_id: str,
    ) -> bool: ...


class AllowAllPermissions:
    """Grants every instance. Used when no permission store is wired in."""

    async def has_permission_for_instance(
        self,
        sub_user_id: str,
        instance_name: str,
        owner_user_id: str,
    ) -> bool:
        return True


class StaticPermissions:
    """In-memory grants: ``{sub_user_id: {instance display names}}``."""

    def __init__(self, grants: Mapping[str, Iterable[str]]):
        self._grants = {user: frozenset(names) for user, names in grants.items()}

    async def has_permission_for_instance(
        self,
        sub_user_id: str,
        instance_name: str,
        owner_user_id: str,
    ) -> bool:
        return instance_name in self._grants.get(sub_user_id, frozenset())


async def ensure_instance_permission(
    principal: Principal,
    instance_name: str,
    checker: InstancePermissionChecker,
) -> None:
    """Raise ForbiddenError when a sub-user may not access the instance."""
    if not principal.is_sub_user:
        return
    allowed = await checker.has_permission_for_instance(
        principal.user_id,
        instance_name,
        principal.effective_user_id,
    )
    if not allowed:
        raise ForbiddenError(
            message="You do not have permission to access this instance.",
            meta={"instance": instance_name},
        )


async def filter_permitted_instances(
    principal: Principal,
    instances: list[GatewayInstance],
    checker: InstancePermissionChecker,
) -> list[GatewayInstance]:
    if not principal.is_sub_user:
        return instances
    permitted = []
    for inst in instances:
        if await checker.has_permission_for_instance(
            principal.user_id,
            inst.display_name,
            principal.effective_user_id,
        ):
            permitted.append(inst)
    return permitted
