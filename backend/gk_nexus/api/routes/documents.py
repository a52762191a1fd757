"""
Document API routes.

Document metadata CRUD within the current organization. References to
clients, appointments and parent documents must stay inside the organization.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from ...database.models import DocumentStatus
from ...schemas.document import (
    DocumentCreateRequest, DocumentUpdateRequest, DocumentResponse, DocumentsListResponse
)
from ...auth.dependencies import get_repository, get_tenant_context
from ...tenancy.context import TenantContext
from ...tenancy.repository import TenantScopedRepository
from .common import list_filter

router = APIRouter(prefix="/documents", tags=["Documents"])


# PUBLIC_INTERFACE
@router.post("/", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED,
             summary="Create document",
             description="Register document metadata, optionally linked to a client, an appointment or a previous version.")
async def create_document(
    request: DocumentCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.documents.create(context, request)


# PUBLIC_INTERFACE
@router.get("/", response_model=DocumentsListResponse,
            summary="List documents",
            description="Get a paginated list of the organization's documents with optional filtering.")
async def list_documents(
    client_id: Optional[UUID] = Query(None, description="Filter by client"),
    appointment_id: Optional[UUID] = Query(None, description="Filter by appointment"),
    parent_document_id: Optional[UUID] = Query(None, description="Filter by previous version"),
    status_filter: Optional[DocumentStatus] = Query(None, alias="status", description="Filter by review status"),
    category: Optional[str] = Query(None, description="Filter by category"),
    q: Optional[str] = Query(None, description="Search title, description or file name"),
    created_from: Optional[datetime] = Query(None, description="Created at or after"),
    created_to: Optional[datetime] = Query(None, description="Created at or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    result = repository.documents.list(context, list_filter(
        page, per_page, q, created_from, created_to,
        client_id=client_id, appointment_id=appointment_id, parent_document_id=parent_document_id,
        status=status_filter, category=category,
    ))
    return DocumentsListResponse(
        documents=[DocumentResponse.model_validate(d) for d in result.items],
        total=result.total,
        page=page,
        per_page=per_page,
    )


# PUBLIC_INTERFACE
@router.get("/{document_id}", response_model=DocumentResponse,
            summary="Get document",
            description="Get a document of the current organization.")
async def get_document(
    document_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.documents.get(context, document_id)


# PUBLIC_INTERFACE
@router.put("/{document_id}", response_model=DocumentResponse,
            summary="Update document",
            description="Partially update a document. Send expected_version to guard against concurrent edits.")
async def update_document(
    document_id: UUID,
    request: DocumentUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    patch, expected_version = request.split()
    return repository.documents.update(context, document_id, patch, expected_version)


# PUBLIC_INTERFACE
@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete document",
               description="Delete a document together with all of its later versions.")
async def delete_document(
    document_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    repository.documents.delete(context, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
