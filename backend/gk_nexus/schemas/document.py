"""
Document-related Pydantic schemas.

Documents carry metadata only; file contents live in external storage.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID

from ..database.models import DocumentStatus
from .common import TenantScopedCreate, TenantScopedResponse, TenantScopedUpdate


class DocumentCreateRequest(TenantScopedCreate):
    """Document creation request schema."""
    title: str = Field(..., min_length=1, max_length=255, description="Document title")
    description: Optional[str] = Field(None, description="Document description")
    category: Optional[str] = Field(None, max_length=100, description="Document category")
    client_id: Optional[UUID] = Field(None, description="Client the document belongs to")
    appointment_id: Optional[UUID] = Field(None, description="Appointment the document was collected at")
    parent_document_id: Optional[UUID] = Field(None, description="Previous version of this document")
    file_name: Optional[str] = Field(None, max_length=255, description="Original file name")
    mime_type: Optional[str] = Field(None, max_length=100, description="MIME type")
    file_size: Optional[int] = Field(None, ge=0, description="File size in bytes")
    status: DocumentStatus = Field(DocumentStatus.PENDING_REVIEW, description="Review status")
    expiry_date: Optional[datetime] = Field(None, description="Expiry date, e.g. for compliance certificates")


class DocumentUpdateRequest(TenantScopedUpdate):
    """Document update request schema."""
    title: Optional[str] = Field(None, min_length=1, max_length=255, description="Document title")
    description: Optional[str] = Field(None, description="Document description")
    category: Optional[str] = Field(None, max_length=100, description="Document category")
    client_id: Optional[UUID] = Field(None, description="Client the document belongs to")
    appointment_id: Optional[UUID] = Field(None, description="Appointment the document was collected at")
    parent_document_id: Optional[UUID] = Field(None, description="Previous version of this document")
    file_name: Optional[str] = Field(None, max_length=255, description="Original file name")
    mime_type: Optional[str] = Field(None, max_length=100, description="MIME type")
    file_size: Optional[int] = Field(None, ge=0, description="File size in bytes")
    status: Optional[DocumentStatus] = Field(None, description="Review status")
    expiry_date: Optional[datetime] = Field(None, description="Expiry date")


class DocumentResponse(TenantScopedResponse):
    """Document response schema."""
    title: str = Field(..., description="Document title")
    description: Optional[str] = Field(None, description="Document description")
    category: Optional[str] = Field(None, description="Document category")
    client_id: Optional[UUID] = Field(None, description="Client ID")
    appointment_id: Optional[UUID] = Field(None, description="Appointment ID")
    parent_document_id: Optional[UUID] = Field(None, description="Previous version ID")
    file_name: Optional[str] = Field(None, description="Original file name")
    mime_type: Optional[str] = Field(None, description="MIME type")
    file_size: Optional[int] = Field(None, description="File size in bytes")
    status: DocumentStatus = Field(..., description="Review status")
    expiry_date: Optional[datetime] = Field(None, description="Expiry date")


class DocumentsListResponse(BaseModel):
    """Documents list response schema."""
    documents: List[DocumentResponse] = Field(..., description="List of documents")
    total: int = Field(..., description="Total number of matching documents")
    page: int = Field(..., description="Page number")
    per_page: int = Field(..., description="Items per page")
