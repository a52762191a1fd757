"""
Audit log Pydantic schemas.
"""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from uuid import UUID


class AuditLogResponse(BaseModel):
    """Audit log entry response schema."""
    id: UUID = Field(..., description="Entry ID")
    organization_id: UUID = Field(..., description="Organization the action happened in")
    user_id: UUID = Field(..., description="Acting user")
    action: str = Field(..., description="Action, e.g. client:create")
    entity_type: str = Field(..., description="Entity type")
    entity_id: str = Field(..., description="Entity ID")
    changes: Optional[Dict[str, Any]] = Field(None, description="Before/after values of changed fields")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    created_at: datetime = Field(..., description="When the action happened")

    class Config:
        from_attributes = True


class AuditLogsListResponse(BaseModel):
    """Audit log list response schema."""
    entries: List[AuditLogResponse] = Field(..., description="Audit log entries")
    limit: int = Field(..., description="Maximum entries returned")
    offset: int = Field(..., description="Entries skipped")
