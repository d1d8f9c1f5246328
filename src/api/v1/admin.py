"""
Administrative endpoints: audit trail and gateway maintenance.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from src.api.deps import CurrentCaller, Registry
from src.kernel.access import GatewayStats
from src.kernel.models.audit import AuditAction, AuditLogEntry
from src.kernel.permissions.policy import Operation

router = APIRouter()


@router.get("/audit", response_model=List[AuditLogEntry])
async def read_audit_log(
    registry: Registry,
    caller: CurrentCaller,
    action: Optional[AuditAction] = Query(None),
    project_id: Optional[str] = Query(None),
):
    """Audit trail, oldest first (admin only)."""
    entries = registry.gateway.audit_log(caller)
    return [
        e for e in entries
        if (action is None or e.action == action)
        and (project_id is None or e.project_id == project_id)
    ]


@router.get("/gateway/stats", response_model=GatewayStats)
async def gateway_stats(registry: Registry, caller: CurrentCaller):
    registry.gateway.authorize(caller, Operation.READ_AUDIT)
    return registry.gateway.stats()


@router.delete("/gateway/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_gateway_cache(registry: Registry, caller: CurrentCaller):
    registry.gateway.authorize(caller, Operation.READ_AUDIT)
    registry.gateway.clear_cache()
