"""
Organization-related Pydantic schemas.

Defines request/response models for the current organization's settings
and for granting users membership.
"""
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID

from ..database.models import UserRole


class OrganizationUpdateRequest(BaseModel):
    """Organization update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Organization name")
    settings: Optional[Dict[str, Any]] = Field(None, description="Settings merged into the current ones")


class OrganizationResponse(BaseModel):
    """Organization response schema."""
    id: UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")
    slug: str = Field(..., description="URL-safe organization identifier")
    settings: Dict[str, Any] = Field(..., description="Organization settings")
    active: bool = Field(..., description="Whether organization is active")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        from_attributes = True


class MemberCreateRequest(BaseModel):
    """
    Membership grant request schema.

    Existing users are matched by email; ``name`` and ``password`` are
    required only when the user does not exist yet.
    """
    email: EmailStr = Field(..., description="User email address")
    role: UserRole = Field(UserRole.READ_ONLY, description="Role in this organization")
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Name for a new user")
    password: Optional[str] = Field(None, min_length=8, description="Password for a new user")


class MembershipResponse(BaseModel):
    """Membership response schema."""
    user_id: UUID = Field(..., description="User ID")
    organization_id: UUID = Field(..., description="Organization ID")
    email: str = Field(..., description="User email address")
    name: str = Field(..., description="User name")
    role: UserRole = Field(..., description="Role in this organization")
    active: bool = Field(..., description="Whether the membership is active")
