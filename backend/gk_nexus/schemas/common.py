"""
Shared Pydantic bases for tenant-scoped entities.

Create and update requests accept an ``organization_id`` so clients that
send one get the repository's behavior (ignored on create, rejected on
change); responses always expose the owning organization and row version.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field
from uuid import UUID


class TenantScopedCreate(BaseModel):
    """Base for creation requests."""
    organization_id: Optional[UUID] = Field(None, description="Ignored; rows always belong to the caller's organization")


class TenantScopedUpdate(BaseModel):
    """Base for partial update requests."""
    organization_id: Optional[UUID] = Field(None, description="Must equal the current organization if given")
    expected_version: Optional[int] = Field(None, ge=1, description="Reject the update if the row version differs")

    def split(self) -> Tuple[Dict[str, Any], Optional[int]]:
        """Fields explicitly set by the client, and the expected version."""
        values = self.model_dump(exclude_unset=True)
        return values, values.pop("expected_version", None)


class TenantScopedResponse(BaseModel):
    """Fields every tenant-scoped entity exposes."""
    id: UUID = Field(..., description="Entity ID")
    organization_id: UUID = Field(..., description="Owning organization ID")
    version: int = Field(..., description="Row version for optimistic locking")
    created_by_id: Optional[UUID] = Field(None, description="User who created the entity")
    updated_by_id: Optional[UUID] = Field(None, description="User who last changed the entity")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        from_attributes = True

