"""
Invoice Pydantic schemas.

Subtotal, VAT and total are computed server-side from the line items and
are read-only for clients.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID

from ..database.models import InvoiceStatus
from .common import TenantScopedCreate, TenantScopedResponse, TenantScopedUpdate


class InvoiceItem(BaseModel):
    """Invoice line item."""
    description: str = Field(..., min_length=1, description="Line description")
    quantity: Decimal = Field(Decimal("1"), gt=0, description="Quantity")
    unit_price: Decimal = Field(..., ge=0, description="Unit price before VAT")
    vat_rate: Optional[Decimal] = Field(None, ge=0, le=100, description="VAT percent; defaults to the standard rate")


class InvoiceLine(InvoiceItem):
    """Invoice line item as stored, including its VAT-inclusive total."""
    vat_rate: Decimal = Field(..., description="VAT percent")
    total: Decimal = Field(..., description="Line total including VAT")


class InvoiceCreateRequest(TenantScopedCreate):
    """Invoice creation request schema."""
    client_id: UUID = Field(..., description="Client being invoiced")
    issue_date: Optional[datetime] = Field(None, description="Issue date; defaults to now")
    due_date: Optional[datetime] = Field(None, description="Payment due date")
    status: InvoiceStatus = Field(InvoiceStatus.DRAFT, description="Invoice status")
    items: List[InvoiceItem] = Field(..., min_length=1, description="Line items")
    currency: str = Field("GYD", min_length=3, max_length=3, description="ISO currency code")
    payment_terms: str = Field("Net 30", max_length=100, description="Payment terms")
    notes: Optional[str] = Field(None, description="Notes printed on the invoice")


class InvoiceUpdateRequest(TenantScopedUpdate):
    """Invoice update request schema."""
    client_id: Optional[UUID] = Field(None, description="Client being invoiced")
    due_date: Optional[datetime] = Field(None, description="Payment due date")
    status: Optional[InvoiceStatus] = Field(None, description="Invoice status")
    items: Optional[List[InvoiceItem]] = Field(None, min_length=1, description="Replacement line items")
    currency: Optional[str] = Field(None, min_length=3, max_length=3, description="ISO currency code")
    payment_terms: Optional[str] = Field(None, max_length=100, description="Payment terms")
    notes: Optional[str] = Field(None, description="Notes printed on the invoice")


class InvoiceResponse(TenantScopedResponse):
    """Invoice response schema."""
    client_id: UUID = Field(..., description="Client ID")
    invoice_number: str = Field(..., description="Invoice number, INV-<year>-<sequence>")
    issue_date: datetime = Field(..., description="Issue date")
    due_date: Optional[datetime] = Field(None, description="Payment due date")
    status: InvoiceStatus = Field(..., description="Invoice status")
    items: List[InvoiceLine] = Field(..., description="Line items")
    subtotal: Decimal = Field(..., description="Sum of line amounts before VAT")
    vat_amount: Decimal = Field(..., description="Total VAT")
    total: Decimal = Field(..., description="Amount due")
    currency: str = Field(..., description="ISO currency code")
    payment_terms: str = Field(..., description="Payment terms")
    notes: Optional[str] = Field(None, description="Notes")


class InvoicesListResponse(BaseModel):
    """Invoices list response schema."""
    invoices: List[InvoiceResponse] = Field(..., description="List of invoices")
    total: int = Field(..., description="Total number of matching invoices")
    page: int = Field(..., description="Page number")
    per_page: int = Field(..., description="Items per page")
