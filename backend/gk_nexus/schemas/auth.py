"""
Authentication and user-related Pydantic schemas.

Defines request/response models for registration, login and organization
selection.
"""
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID

from ..database.models import UserRole


class UserRegistrationRequest(BaseModel):
    """User registration request schema; creates the user's first organization."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=8, description="User password (minimum 8 characters)")
    name: str = Field(..., min_length=1, max_length=255, description="User full name")
    organization_name: str = Field(..., min_length=1, max_length=255, description="Name of the new organization")


class UserLoginRequest(BaseModel):
    """User login request schema."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")
    organization_id: Optional[UUID] = Field(None, description="Organization to select at login")


class OrganizationSelectionRequest(BaseModel):
    """Organization selection request schema."""
    organization_id: UUID = Field(..., description="Organization ID to select")


class OrganizationInfo(BaseModel):
    """An organization the user belongs to, with their role there."""
    id: UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")
    role: UserRole = Field(..., description="User role in this organization")


class UserInfo(BaseModel):
    """User information schema."""
    id: UUID = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email address")
    name: str = Field(..., description="User full name")
    active: bool = Field(..., description="Whether user is active")

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    """Authentication response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserInfo = Field(..., description="User information")
    organizations: List[OrganizationInfo] = Field(..., description="Organizations the user belongs to")
    current_organization_id: Optional[UUID] = Field(None, description="Organization selected for this token")


class CurrentUserResponse(BaseModel):
    """Current user response schema."""
    user: UserInfo = Field(..., description="User information")
    organizations: List[OrganizationInfo] = Field(..., description="Organizations the user belongs to")
    current_organization_id: Optional[UUID] = Field(None, description="Organization selected for this token")
