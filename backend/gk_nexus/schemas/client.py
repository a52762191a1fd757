"""
Client-related Pydantic schemas.

Defines request/response models for client management within the
current organization.
"""
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from ..database.models import ClientEntityType, ClientStatus
from .common import TenantScopedCreate, TenantScopedResponse, TenantScopedUpdate


class ClientCreateRequest(TenantScopedCreate):
    """Client creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Client name")
    entity_type: ClientEntityType = Field(ClientEntityType.INDIVIDUAL, description="Legal form of the client")
    email: Optional[EmailStr] = Field(None, description="Client contact email")
    phone_number: Optional[str] = Field(None, max_length=50, description="Client contact phone")
    address: Optional[str] = Field(None, description="Client address")
    tin_number: Optional[str] = Field(None, max_length=20, description="GRA Taxpayer Identification Number")
    nis_number: Optional[str] = Field(None, max_length=20, description="National Insurance Scheme number")
    status: ClientStatus = Field(ClientStatus.PENDING_APPROVAL, description="Client status")
    notes: Optional[str] = Field(None, description="Internal notes")


class ClientUpdateRequest(TenantScopedUpdate):
    """Client update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255, description="Client name")
    entity_type: Optional[ClientEntityType] = Field(None, description="Legal form of the client")
    email: Optional[EmailStr] = Field(None, description="Client contact email")
    phone_number: Optional[str] = Field(None, max_length=50, description="Client contact phone")
    address: Optional[str] = Field(None, description="Client address")
    tin_number: Optional[str] = Field(None, max_length=20, description="GRA Taxpayer Identification Number")
    nis_number: Optional[str] = Field(None, max_length=20, description="National Insurance Scheme number")
    status: Optional[ClientStatus] = Field(None, description="Client status")
    notes: Optional[str] = Field(None, description="Internal notes")


class ClientResponse(TenantScopedResponse):
    """Client response schema."""
    name: str = Field(..., description="Client name")
    entity_type: ClientEntityType = Field(..., description="Legal form of the client")
    email: Optional[str] = Field(None, description="Client contact email")
    phone_number: Optional[str] = Field(None, description="Client contact phone")
    address: Optional[str] = Field(None, description="Client address")
    tin_number: Optional[str] = Field(None, description="GRA Taxpayer Identification Number")
    nis_number: Optional[str] = Field(None, description="National Insurance Scheme number")
    status: ClientStatus = Field(..., description="Client status")
    notes: Optional[str] = Field(None, description="Internal notes")


class ClientsListResponse(BaseModel):
    """Clients list response schema."""
    clients: List[ClientResponse] = Field(..., description="List of clients")
    total: int = Field(..., description="Total number of matching clients")
    page: int = Field(..., description="Page number")
    per_page: int = Field(..., description="Items per page")
