"""
Invoice API routes.

Invoice numbers and totals are assigned by the server; line items are the
only input for amounts.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from ...database.models import InvoiceStatus
from ...schemas.invoice import (
    InvoiceCreateRequest, InvoiceUpdateRequest, InvoiceResponse, InvoicesListResponse
)
from ...auth.dependencies import get_repository, get_tenant_context
from ...tenancy.context import TenantContext
from ...tenancy.repository import TenantScopedRepository
from .common import list_filter

router = APIRouter(prefix="/invoices", tags=["Invoices"])


# PUBLIC_INTERFACE
@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED,
             summary="Create invoice",
             description="Create an invoice for a client. The number is assigned per organization and year; VAT defaults to 14%.")
async def create_invoice(
    request: InvoiceCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.invoices.create(context, request)


# PUBLIC_INTERFACE
@router.get("/", response_model=InvoicesListResponse,
            summary="List invoices",
            description="Get a paginated list of invoices, most recently issued first.")
async def list_invoices(
    client_id: Optional[UUID] = Query(None, description="Filter by client"),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status", description="Filter by status"),
    currency: Optional[str] = Query(None, description="Filter by currency"),
    q: Optional[str] = Query(None, description="Search invoice number or notes"),
    issued_from: Optional[datetime] = Query(None, description="Issued at or after"),
    issued_to: Optional[datetime] = Query(None, description="Issued at or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    result = repository.invoices.list(context, list_filter(
        page, per_page, q, issued_from, issued_to,
        client_id=client_id, status=status_filter, currency=currency,
    ))
    return InvoicesListResponse(
        invoices=[InvoiceResponse.model_validate(i) for i in result.items],
        total=result.total,
        page=page,
        per_page=per_page,
    )


# PUBLIC_INTERFACE
@router.get("/{invoice_id}", response_model=InvoiceResponse,
            summary="Get invoice")
async def get_invoice(
    invoice_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.invoices.get(context, invoice_id)


# PUBLIC_INTERFACE
@router.put("/{invoice_id}", response_model=InvoiceResponse,
            summary="Update invoice",
            description="Update an invoice. Replacing the items recomputes subtotal, VAT and total.")
async def update_invoice(
    invoice_id: UUID,
    request: InvoiceUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    patch, expected_version = request.split()
    return repository.invoices.update(context, invoice_id, patch, expected_version)


# PUBLIC_INTERFACE
@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete invoice")
async def delete_invoice(
    invoice_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    repository.invoices.delete(context, invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
