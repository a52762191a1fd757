"""
Tests for invoice numbering and VAT arithmetic.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from .. import billing
from ..billing import compute_invoice_totals
from ..database.models import Invoice
from ..tenancy.errors import DuplicateEntity, ImmutableFieldViolation, InvalidPayload


@pytest.fixture
def invoice_client(repository, tenant_a):
    return repository.clients.create(tenant_a.context, {"name": "Corentyne Shipping"})


def invoice_payload(client, **extra):
    return {
        "client_id": client.id,
        "issue_date": datetime(2025, 2, 3, tzinfo=timezone.utc),
        "items": [
            {"description": "Annual tax return", "quantity": 1, "unit_price": "150000.00"},
            {"description": "NIS registration", "quantity": 2, "unit_price": "12500.50", "vat_rate": 0},
        ],
        **extra,
    }


class TestInvoiceTotals:
    """Totals are derived from line items with 14% VAT by default."""

    def test_compute_totals(self):
        items, subtotal, vat_amount, total = compute_invoice_totals([
            {"description": "Bookkeeping", "quantity": "3", "unit_price": "10000"},
            {"description": "Exempt filing fee", "unit_price": "2500", "vat_rate": "0"},
        ])

        assert subtotal == Decimal("32500.00")
        assert vat_amount == Decimal("4200.00")
        assert total == Decimal("36700.00")
        assert items[0]["vat_rate"] == "14"
        assert items[0]["total"] == "34200.00"
        assert items[1]["quantity"] == "1"

    def test_vat_is_rounded_half_up_per_line(self):
        _, subtotal, vat_amount, total = compute_invoice_totals([
            {"description": "Consultation", "quantity": "1", "unit_price": "0.25"},
        ])

        assert subtotal == Decimal("0.25")
        assert vat_amount == Decimal("0.04")
        assert total == Decimal("0.29")

    @pytest.mark.parametrize("item", [
        {"description": "", "unit_price": "1"},
        {"description": "Zero quantity", "quantity": "0", "unit_price": "1"},
        {"description": "Negative price", "unit_price": "-5"},
        {"description": "Bad VAT", "unit_price": "5", "vat_rate": "101"},
        {"description": "Not a number", "unit_price": "ten"},
        {"description": "NaN quantity", "quantity": "NaN", "unit_price": "1"},
        {"description": "Infinite price", "unit_price": "Infinity"},
        {"description": 42, "unit_price": "1"},
        "Bookkeeping for March",
    ])
    def test_invalid_items_are_rejected(self, item):
        with pytest.raises(InvalidPayload):
            compute_invoice_totals([item])


class TestInvoiceRepository:
    """Invoices created through the repository get numbers and totals."""

    def test_create_assigns_number_and_totals(self, repository, tenant_a, invoice_client):
        invoice = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))

        assert invoice.invoice_number == "INV-2025-0001"
        assert invoice.subtotal == Decimal("175001.00")
        assert invoice.vat_amount == Decimal("21000.00")
        assert invoice.total == Decimal("196001.00")
        assert invoice.currency == "GYD"

    def test_numbers_are_sequenced_per_organization(self, repository, tenant_a, tenant_b, invoice_client):
        first = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))
        second = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))
        other_client = repository.clients.create(tenant_b.context, {"name": "Beta client"})
        other = repository.invoices.create(tenant_b.context, invoice_payload(other_client))
        next_year = repository.invoices.create(tenant_a.context, invoice_payload(
            invoice_client, issue_date=datetime(2026, 1, 2, tzinfo=timezone.utc),
        ))

        assert [first.invoice_number, second.invoice_number] == ["INV-2025-0001", "INV-2025-0002"]
        assert other.invoice_number == "INV-2025-0001"
        assert next_year.invoice_number == "INV-2026-0001"

    def test_number_clash_is_duplicate(self, repository, db_session, tenant_a, invoice_client, monkeypatch):
        repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))
        monkeypatch.setattr(billing, "next_invoice_number", lambda db, organization_id, year: "INV-2025-0001")

        with pytest.raises(DuplicateEntity):
            repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))

        assert db_session.query(Invoice).count() == 1

    def test_supplied_totals_are_ignored(self, repository, tenant_a, invoice_client):
        invoice = repository.invoices.create(tenant_a.context, invoice_payload(
            invoice_client, total="1.00", invoice_number="INV-1999-9999",
        ))

        assert invoice.total == Decimal("196001.00")
        assert invoice.invoice_number == "INV-2025-0001"

    def test_replacing_items_recomputes_totals(self, repository, tenant_a, invoice_client):
        invoice = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))

        updated = repository.invoices.update(tenant_a.context, invoice.id, {
            "items": [{"description": "Payroll processing", "quantity": 1, "unit_price": "50000"}],
        })

        assert updated.subtotal == Decimal("50000.00")
        assert updated.vat_amount == Decimal("7000.00")
        assert updated.total == Decimal("57000.00")
        assert updated.invoice_number == "INV-2025-0001"

    def test_changing_invoice_number_is_rejected(self, repository, tenant_a, invoice_client):
        invoice = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))

        with pytest.raises(ImmutableFieldViolation):
            repository.invoices.update(tenant_a.context, invoice.id, {"invoice_number": "INV-2025-0099"})

    def test_status_update_keeps_totals(self, repository, tenant_a, invoice_client):
        invoice = repository.invoices.create(tenant_a.context, invoice_payload(invoice_client))

        updated = repository.invoices.update(tenant_a.context, invoice.id, {"status": "sent"})

        assert updated.total == Decimal("196001.00")
        assert updated.status.value == "sent"
