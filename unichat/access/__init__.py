from .permissions import (
    AllowAllPermissions,
    InstancePermissionChecker,
    Principal,
    StaticPermissions,
    ensure_instance_permission,
    filter_permitted_instances,
)

__all__ = [
    "AllowAllPermissions",
    "InstancePermissionChecker",
    "Principal",
    "StaticPermissions",
    "ensure_instance_permission",
    "filter_permitted_instances",
]
