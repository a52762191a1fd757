"""
Invoice arithmetic and numbering.

Totals are always derived from the line items; callers never supply them.
"""
import os
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from .database.models import Invoice, utcnow
from .tenancy.errors import InvalidPayload

DEFAULT_VAT_RATE = Decimal(os.getenv("DEFAULT_VAT_RATE", "14"))  # Guyana VAT, percent
CENT = Decimal("0.01")


def _decimal(value: Any, field: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPayload(f"Invalid invoice item {field}: {value!r}")
    if not number.is_finite():
        raise InvalidPayload(f"Invalid invoice item {field}: {value!r}")
    return number


def compute_invoice_totals(items: List[Dict[str, Any]]) -> Tuple[List[Dict[str, str]], Decimal, Decimal, Decimal]:
    """
    Normalize invoice line items and compute subtotal, VAT and total.

    Returns:
        Tuple of (normalized items, subtotal, vat_amount, total)
    """
    normalized = []
    subtotal = Decimal("0")
    vat_amount = Decimal("0")

    if not isinstance(items, (list, tuple)):
        raise InvalidPayload("Invoice items must be a list")

    for item in items:
        if not isinstance(item, Mapping):
            raise InvalidPayload(f"Invalid invoice item: {item!r}")
        description = item.get("description") or ""
        if not isinstance(description, str) or not description.strip():
            raise InvalidPayload("Invoice item description is required")
        quantity = _decimal(item.get("quantity", 1), "quantity")
        unit_price = _decimal(item.get("unit_price", 0), "unit_price")
        vat_rate = item.get("vat_rate")
        vat_rate = DEFAULT_VAT_RATE if vat_rate is None else _decimal(vat_rate, "vat_rate")
        if quantity <= 0:
            raise InvalidPayload("Invoice item quantity must be positive")
        if unit_price < 0:
            raise InvalidPayload("Invoice item unit_price cannot be negative")
        if not Decimal("0") <= vat_rate <= Decimal("100"):
            raise InvalidPayload("Invoice item vat_rate must be between 0 and 100")

        line_amount = (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)
        line_vat = (line_amount * vat_rate / 100).quantize(CENT, rounding=ROUND_HALF_UP)
        subtotal += line_amount
        vat_amount += line_vat
        normalized.append({
            "description": description.strip(),
            "quantity": str(quantity),
            "unit_price": str(unit_price),
            "vat_rate": str(vat_rate),
            "total": str(line_amount + line_vat),
        })

    return normalized, subtotal, vat_amount, subtotal + vat_amount


def next_invoice_number(db: Session, organization_id: UUID, year: int) -> str:
    """Next ``INV-<year>-<seq>`` number, sequenced per organization and year."""
    prefix = f"INV-{year}-"
    numbers = db.query(Invoice.invoice_number).filter(
        Invoice.organization_id == organization_id,
        Invoice.invoice_number.like(f"{prefix}%"),
    ).all()

    highest = 0
    for (number,) in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:04d}"


def prepare_invoice(db: Session, context, values: Dict[str, Any], existing) -> Dict[str, Any]:
    if existing is None or "items" in values:
        items, subtotal, vat_amount, total = compute_invoice_totals(values.get("items") or [])
        values.update(items=items, subtotal=subtotal, vat_amount=vat_amount, total=total)

    if existing is None:
        if values.get("issue_date") is None:
            values["issue_date"] = utcnow()
        values["invoice_number"] = next_invoice_number(db, context.organization_id, values["issue_date"].year)
    return values
