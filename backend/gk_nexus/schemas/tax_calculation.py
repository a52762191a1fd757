"""
Tax calculation Pydantic schemas.

Inputs and results are stored as submitted; the PAYE/VAT/NIS arithmetic that
produces them lives outside this service.
"""
from decimal import Decimal
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from uuid import UUID

from ..database.models import TaxCalculationStatus, TaxType
from .common import TenantScopedCreate, TenantScopedResponse, TenantScopedUpdate


class TaxCalculationCreateRequest(TenantScopedCreate):
    """Tax calculation creation request schema."""
    client_id: Optional[UUID] = Field(None, description="Client the calculation is for")
    tax_type: TaxType = Field(..., description="Tax type")
    tax_year: int = Field(..., ge=2000, le=2100, description="Tax year")
    period: Optional[str] = Field(None, max_length=20, description="Period within the year, e.g. 2024-01 or 2024-Q1")
    inputs: Dict[str, Any] = Field(default_factory=dict, description="Calculation inputs")
    results: Dict[str, Any] = Field(default_factory=dict, description="Calculation results")
    total_tax: Optional[Decimal] = Field(None, ge=0, description="Total tax due")
    status: TaxCalculationStatus = Field(TaxCalculationStatus.DRAFT, description="Calculation status")


class TaxCalculationUpdateRequest(TenantScopedUpdate):
    """Tax calculation update request schema."""
    client_id: Optional[UUID] = Field(None, description="Client the calculation is for")
    tax_type: Optional[TaxType] = Field(None, description="Tax type")
    tax_year: Optional[int] = Field(None, ge=2000, le=2100, description="Tax year")
    period: Optional[str] = Field(None, max_length=20, description="Period within the year")
    inputs: Optional[Dict[str, Any]] = Field(None, description="Calculation inputs")
    results: Optional[Dict[str, Any]] = Field(None, description="Calculation results")
    total_tax: Optional[Decimal] = Field(None, ge=0, description="Total tax due")
    status: Optional[TaxCalculationStatus] = Field(None, description="Calculation status")


class TaxCalculationResponse(TenantScopedResponse):
    """Tax calculation response schema."""
    client_id: Optional[UUID] = Field(None, description="Client ID")
    tax_type: TaxType = Field(..., description="Tax type")
    tax_year: int = Field(..., description="Tax year")
    period: Optional[str] = Field(None, description="Period within the year")
    inputs: Dict[str, Any] = Field(..., description="Calculation inputs")
    results: Dict[str, Any] = Field(..., description="Calculation results")
    total_tax: Optional[Decimal] = Field(None, description="Total tax due")
    status: TaxCalculationStatus = Field(..., description="Calculation status")


class TaxCalculationsListResponse(BaseModel):
    """Tax calculations list response schema."""
    tax_calculations: List[TaxCalculationResponse] = Field(..., description="List of tax calculations")
    total: int = Field(..., description="Total number of matching calculations")
    page: int = Field(..., description="Page number")
    per_page: int = Field(..., description="Items per page")
