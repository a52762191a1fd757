"""
Audit log API routes.

Read-only access to the organization's audit trail for admins and managers.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from uuid import UUID

from ...audit.recorder import AuditFilter, AuditRecorder
from ...schemas.audit import AuditLogResponse, AuditLogsListResponse
from ...auth.dependencies import get_audit_recorder, get_tenant_context
from ...tenancy.context import TenantContext

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


# PUBLIC_INTERFACE
@router.get("/", response_model=AuditLogsListResponse,
            summary="Query audit log",
            description="Get audit entries of the current organization, newest first. Requires admin or manager role.")
async def list_audit_logs(
    entity_type: Optional[str] = Query(None, description="Filter by entity type, e.g. client"),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    user_id: Optional[UUID] = Query(None, description="Filter by acting user"),
    action: Optional[str] = Query(None, description="Filter by action, e.g. invoice:update"),
    start: Optional[datetime] = Query(None, description="Entries at or after"),
    end: Optional[datetime] = Query(None, description="Entries at or before"),
    ascending: bool = Query(False, description="Oldest first"),
    limit: int = Query(100, ge=1, le=500, description="Maximum entries"),
    offset: int = Query(0, ge=0, description="Entries to skip"),
    context: TenantContext = Depends(get_tenant_context),
    recorder: AuditRecorder = Depends(get_audit_recorder)
):
    """
    Query the audit trail.

    Entries of other organizations are never returned, whatever the filters.
    """
    entries = recorder.query(context, AuditFilter(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        start=start,
        end=end,
        ascending=ascending,
        limit=limit,
        offset=offset,
    ))
    return AuditLogsListResponse(
        entries=[AuditLogResponse.model_validate(e) for e in entries],
        limit=limit,
        offset=offset,
    )
