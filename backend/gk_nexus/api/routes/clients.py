"""
Client management API routes.

Provides endpoints for client CRUD operations within the current
organization. All data access goes through the tenant-scoped repository.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from ...database.models import ClientEntityType, ClientStatus
from ...schemas.client import (
    ClientCreateRequest, ClientUpdateRequest, ClientResponse, ClientsListResponse
)
from ...auth.dependencies import get_repository, get_tenant_context
from ...tenancy.context import TenantContext
from ...tenancy.repository import TenantScopedRepository
from .common import list_filter

router = APIRouter(prefix="/clients", tags=["Clients"])


# PUBLIC_INTERFACE
@router.post("/", response_model=ClientResponse, status_code=status.HTTP_201_CREATED,
             summary="Create new client",
             description="Create a new client within the current organization.")
async def create_client(
    request: ClientCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    """
    Create a new client.

    The client always belongs to the organization of the request, whatever
    ``organization_id`` the body carries.
    """
    return repository.clients.create(context, request)


# PUBLIC_INTERFACE
@router.get("/", response_model=ClientsListResponse,
            summary="List clients",
            description="Get a paginated list of the organization's clients with optional filtering.")
async def list_clients(
    status_filter: Optional[ClientStatus] = Query(None, alias="status", description="Filter by status"),
    entity_type: Optional[ClientEntityType] = Query(None, description="Filter by legal form"),
    q: Optional[str] = Query(None, description="Search name, email, TIN or NIS number"),
    created_from: Optional[datetime] = Query(None, description="Created at or after"),
    created_to: Optional[datetime] = Query(None, description="Created at or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    """List clients, newest first."""
    result = repository.clients.list(context, list_filter(
        page, per_page, q, created_from, created_to,
        status=status_filter, entity_type=entity_type,
    ))
    return ClientsListResponse(
        clients=[ClientResponse.model_validate(c) for c in result.items],
        total=result.total,
        page=page,
        per_page=per_page,
    )


# PUBLIC_INTERFACE
@router.get("/{client_id}", response_model=ClientResponse,
            summary="Get client",
            description="Get a client of the current organization.")
async def get_client(
    client_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.clients.get(context, client_id)


# PUBLIC_INTERFACE
@router.put("/{client_id}", response_model=ClientResponse,
            summary="Update client",
            description="Partially update a client. Send expected_version to guard against concurrent edits.")
async def update_client(
    client_id: UUID,
    request: ClientUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    patch, expected_version = request.split()
    return repository.clients.update(context, client_id, patch, expected_version)


# PUBLIC_INTERFACE
@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete client",
               description="Delete a client. Fails with 409 while documents, appointments, tax calculations or invoices reference it.")
async def delete_client(
    client_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    repository.clients.delete(context, client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
