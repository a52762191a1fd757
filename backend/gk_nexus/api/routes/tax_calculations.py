"""
Tax calculation API routes.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from ...database.models import TaxCalculationStatus, TaxType
from ...schemas.tax_calculation import (
    TaxCalculationCreateRequest, TaxCalculationUpdateRequest,
    TaxCalculationResponse, TaxCalculationsListResponse
)
from ...auth.dependencies import get_repository, get_tenant_context
from ...tenancy.context import TenantContext
from ...tenancy.repository import TenantScopedRepository
from .common import list_filter

router = APIRouter(prefix="/tax-calculations", tags=["Tax Calculations"])


# PUBLIC_INTERFACE
@router.post("/", response_model=TaxCalculationResponse, status_code=status.HTTP_201_CREATED,
             summary="Save tax calculation",
             description="Store a PAYE, VAT, NIS, corporate or withholding tax calculation.")
async def create_tax_calculation(
    request: TaxCalculationCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.tax_calculations.create(context, request)


# PUBLIC_INTERFACE
@router.get("/", response_model=TaxCalculationsListResponse,
            summary="List tax calculations",
            description="Get a paginated list of stored tax calculations with optional filtering.")
async def list_tax_calculations(
    client_id: Optional[UUID] = Query(None, description="Filter by client"),
    tax_type: Optional[TaxType] = Query(None, description="Filter by tax type"),
    tax_year: Optional[int] = Query(None, description="Filter by tax year"),
    status_filter: Optional[TaxCalculationStatus] = Query(None, alias="status", description="Filter by status"),
    q: Optional[str] = Query(None, description="Search period"),
    created_from: Optional[datetime] = Query(None, description="Created at or after"),
    created_to: Optional[datetime] = Query(None, description="Created at or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    result = repository.tax_calculations.list(context, list_filter(
        page, per_page, q, created_from, created_to,
        client_id=client_id, tax_type=tax_type, tax_year=tax_year, status=status_filter,
    ))
    return TaxCalculationsListResponse(
        tax_calculations=[TaxCalculationResponse.model_validate(t) for t in result.items],
        total=result.total,
        page=page,
        per_page=per_page,
    )


# PUBLIC_INTERFACE
@router.get("/{calculation_id}", response_model=TaxCalculationResponse,
            summary="Get tax calculation")
async def get_tax_calculation(
    calculation_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.tax_calculations.get(context, calculation_id)


# PUBLIC_INTERFACE
@router.put("/{calculation_id}", response_model=TaxCalculationResponse,
            summary="Update tax calculation")
async def update_tax_calculation(
    calculation_id: UUID,
    request: TaxCalculationUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    patch, expected_version = request.split()
    return repository.tax_calculations.update(context, calculation_id, patch, expected_version)


# PUBLIC_INTERFACE
@router.delete("/{calculation_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete tax calculation")
async def delete_tax_calculation(
    calculation_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    repository.tax_calculations.delete(context, calculation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
