"""
Instance API Routes

Lists the gateway instances visible to the caller.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from unichat.access import InstancePermissionChecker, Principal, filter_permitted_instances
from unichat.api.deps import get_gateway_client, get_permission_checker, get_principal
from unichat.gateway import GatewayClient, GatewayInstance, GatewayRequestError, select_user_instances
from unichat.kernel.errors import UpstreamError

logger = structlog.get_logger()

router = APIRouter(prefix="/instances", tags=["instances"])


class InstanceListResponse(BaseModel):
    instances: list[dict[str, Any]]
    total: int


async def list_user_instances(
    gateway: GatewayClient,
    principal: Principal,
    checker: InstancePermissionChecker,
) -> list[GatewayInstance]:
    """Instances owned by the effective user, narrowed to a sub-user's grants."""
    try:
        raw_instances = await gateway.fetch_instances()
    except GatewayRequestError as e:
        raise UpstreamError(
            message="Failed to fetch instances",
            code="upstream.instances_unavailable",
            status_code=e.upstream_status,
        ) from e

    instances = select_user_instances(raw_instances, principal.effective_user_id)
    permitted = await filter_permitted_instances(principal, instances, checker)
    logger.debug(
        "Resolved user instances",
        user_id=principal.effective_user_id,
        is_sub_user=principal.is_sub_user,
        owned=len(instances),
        permitted=len(permitted),
    )
    return permitted


@router.get("", response_model=InstanceListResponse)
async def get_instances(
    principal: Principal = Depends(get_principal),
    gateway: GatewayClient = Depends(get_gateway_client),
    checker: InstancePermissionChecker = Depends(get_permission_checker),
):
    """List the caller's instances with the owner prefix stripped."""
    instances = await list_user_instances(gateway, principal, checker)
    return InstanceListResponse(
        instances=[inst.to_dict() for inst in instances],
        total=len(instances),
    )
