"""
SQLAlchemy database models for GK-Nexus.

Defines organizations (tenants), users and their memberships, the
tenant-scoped business entities (clients, documents, appointments,
tax calculations, invoices) and the append-only audit log.
"""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Text, Numeric,
    ForeignKey, JSON, UniqueConstraint, Index, Enum, Uuid
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    """User roles within an organization."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    CLIENT_SERVICE = "client_service"
    READ_ONLY = "read_only"


class ClientEntityType(str, enum.Enum):
    """Legal form of a client."""
    INDIVIDUAL = "INDIVIDUAL"
    COMPANY = "COMPANY"
    PARTNERSHIP = "PARTNERSHIP"
    SOLE_PROPRIETORSHIP = "SOLE_PROPRIETORSHIP"
    LIMITED_LIABILITY_COMPANY = "LIMITED_LIABILITY_COMPANY"
    CORPORATION = "CORPORATION"
    TRUST = "TRUST"
    ESTATE = "ESTATE"
    NON_PROFIT = "NON_PROFIT"
    GOVERNMENT = "GOVERNMENT"


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_APPROVAL = "pending_approval"
    ARCHIVED = "archived"


class DocumentStatus(str, enum.Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class TaxType(str, enum.Enum):
    PAYE = "PAYE"
    VAT = "VAT"
    NIS = "NIS"
    CORPORATE = "CORPORATE"
    WITHHOLDING = "WITHHOLDING"


class TaxCalculationStatus(str, enum.Enum):
    DRAFT = "draft"
    FINAL = "final"
    FILED = "filed"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Organization(Base):
    """Organization model, the tenant boundary for all business data."""
    __tablename__ = "organizations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    settings = Column(JSON, nullable=False, default=dict)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    memberships = relationship("OrganizationMembership", back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"


class User(Base):
    """Global user record; authorization is always evaluated per organization."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)

    memberships = relationship("OrganizationMembership", back_populates="user")

    __table_args__ = (
        Index('idx_user_active', 'active'),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class OrganizationMembership(Base):
    """Join entity granting a user a role inside one organization."""
    __tablename__ = "organization_memberships"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.READ_ONLY)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('user_id', 'organization_id', name='uq_membership_user_org'),
        Index('idx_membership_org', 'organization_id'),
    )

    def __repr__(self):
        return f"<OrganizationMembership(user_id={self.user_id}, organization_id={self.organization_id}, role={self.role})>"


class Client(Base):
    """Client of a professional-services firm."""
    __tablename__ = "clients"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    name = Column(String(255), nullable=False)
    entity_type = Column(Enum(ClientEntityType), nullable=False, default=ClientEntityType.INDIVIDUAL)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    tin_number = Column(String(20), nullable=True)
    nis_number = Column(String(20), nullable=True)
    status = Column(Enum(ClientStatus), nullable=False, default=ClientStatus.PENDING_APPROVAL)
    notes = Column(Text, nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index('idx_client_org', 'organization_id'),
        Index('idx_client_org_status', 'organization_id', 'status'),
    )

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}', organization_id={self.organization_id})>"


class Appointment(Base):
    """Scheduled meeting between a client and a staff member."""
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=False)
    assigned_to_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    location = Column(String(255), nullable=True)
    status = Column(Enum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    cancellation_reason = Column(Text, nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    client = relationship("Client")
    assigned_to = relationship("User", foreign_keys=[assigned_to_id])

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index('idx_appointment_org', 'organization_id'),
        Index('idx_appointment_org_client', 'organization_id', 'client_id'),
        Index('idx_appointment_scheduled_at', 'scheduled_at'),
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, client_id={self.client_id}, scheduled_at={self.scheduled_at})>"


class Document(Base):
    """Document metadata; file bytes live in external storage."""
    __tablename__ = "documents"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=True)
    appointment_id = Column(Uuid(as_uuid=True), ForeignKey("appointments.id"), nullable=True)
    parent_document_id = Column(Uuid(as_uuid=True), ForeignKey("documents.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    file_name = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    status = Column(Enum(DocumentStatus), nullable=False, default=DocumentStatus.PENDING_REVIEW)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    client = relationship("Client")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index('idx_document_org', 'organization_id'),
        Index('idx_document_org_client', 'organization_id', 'client_id'),
    )

    def __repr__(self):
        return f"<Document(id={self.id}, title='{self.title}', client_id={self.client_id})>"


class TaxCalculation(Base):
    """Stored PAYE/VAT/NIS/corporate tax computation."""
    __tablename__ = "tax_calculations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=True)
    tax_type = Column(Enum(TaxType), nullable=False)
    tax_year = Column(Integer, nullable=False)
    period = Column(String(20), nullable=True)  # e.g. "2024-01", "2024-Q1"
    inputs = Column(JSON, nullable=False, default=dict)
    results = Column(JSON, nullable=False, default=dict)
    total_tax = Column(Numeric(15, 2), nullable=True)
    status = Column(Enum(TaxCalculationStatus), nullable=False, default=TaxCalculationStatus.DRAFT)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index('idx_tax_calculation_org', 'organization_id'),
        Index('idx_tax_calculation_org_type_year', 'organization_id', 'tax_type', 'tax_year'),
    )

    def __repr__(self):
        return f"<TaxCalculation(id={self.id}, tax_type={self.tax_type}, tax_year={self.tax_year})>"


class Invoice(Base):
    """Client invoice with VAT-inclusive totals derived from its line items."""
    __tablename__ = "invoices"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    client_id = Column(Uuid(as_uuid=True), ForeignKey("clients.id"), nullable=False)
    invoice_number = Column(String(50), nullable=False)
    issue_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    due_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(Enum(InvoiceStatus), nullable=False, default=InvoiceStatus.DRAFT)
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)
    vat_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="GYD")
    payment_terms = Column(String(100), nullable=False, default="Net 30")
    notes = Column(Text, nullable=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    updated_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)
    version = Column(Integer, nullable=False)

    client = relationship("Client")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint('organization_id', 'invoice_number', name='uq_invoice_number_per_org'),
        Index('idx_invoice_org', 'organization_id'),
        Index('idx_invoice_org_status', 'organization_id', 'status'),
    )

    def __repr__(self):
        return f"<Invoice(id={self.id}, invoice_number='{self.invoice_number}')>"


class AuditLogEntry(Base):
    """Append-only record of one mutating operation."""
    __tablename__ = "audit_log"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    action = Column(String(100), nullable=False)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=False)  # no FK: survives deletion of the entity
    changes = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)  # Support IPv6
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_audit_org_entity', 'organization_id', 'entity_type', 'entity_id'),
        Index('idx_audit_org_created_at', 'organization_id', 'created_at'),
    )

    def __repr__(self):
        return f"<AuditLogEntry(id={self.id}, action='{self.action}', entity_id={self.entity_id})>"
