"""
Entity registry for the tenant-scoped repository.

Each business entity declares which of its fields reference other rows, what
happens to dependent rows when it is deleted, and which fields may be used
for list filtering and search.
"""
import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ..billing import prepare_invoice
from ..database.models import Appointment, Client, Document, Invoice, TaxCalculation
from .errors import InvalidPayload

# Reference target meaning "an active member of the same organization".
MEMBER = "member"

# Columns the repository manages itself; never taken from a payload.
MANAGED_FIELDS = frozenset({
    "id", "organization_id", "created_at", "updated_at",
    "created_by_id", "updated_by_id", "version",
})


class DeletePolicy(str, enum.Enum):
    """What deleting a parent does to rows that reference it."""
    BLOCK = "block"
    CASCADE = "cascade"
    DETACH = "detach"


@dataclass(frozen=True)
class Reference:
    field: str
    target: str


@dataclass(frozen=True)
class Dependent:
    entity_type: str
    field: str
    policy: DeletePolicy


@dataclass(frozen=True)
class EntityDefinition:
    name: str
    model: type
    references: Tuple[Reference, ...] = ()
    dependents: Tuple[Dependent, ...] = ()
    filter_fields: Tuple[str, ...] = ()
    search_fields: Tuple[str, ...] = ()
    date_field: str = "created_at"
    read_only_fields: Tuple[str, ...] = ()
    prepare: Optional[Callable[[Session, Any, Dict[str, Any], Any], Dict[str, Any]]] = None

    def is_protected(self, field: str) -> bool:
        return field in MANAGED_FIELDS or field in self.read_only_fields


def prepare_document(db: Session, context, values: Dict[str, Any], existing) -> Dict[str, Any]:
    """Reject version chains that would loop back to the document itself."""
    parent_id = values.get("parent_document_id")
    if existing is None or parent_id is None:
        return values

    seen = set()
    current = parent_id
    while current is not None and current not in seen:
        if current == existing.id:
            raise InvalidPayload("A document cannot be its own ancestor")
        seen.add(current)
        current = db.query(Document.parent_document_id).filter(
            Document.id == current,
            Document.organization_id == context.organization_id,
        ).scalar()
    return values


ENTITY_DEFINITIONS: Dict[str, EntityDefinition] = {}


def register(definition: EntityDefinition) -> EntityDefinition:
    ENTITY_DEFINITIONS[definition.name] = definition
    return definition


register(EntityDefinition(
    name="client",
    model=Client,
    dependents=(
        Dependent("document", "client_id", DeletePolicy.BLOCK),
        Dependent("appointment", "client_id", DeletePolicy.BLOCK),
        Dependent("tax_calculation", "client_id", DeletePolicy.BLOCK),
        Dependent("invoice", "client_id", DeletePolicy.BLOCK),
    ),
    filter_fields=("status", "entity_type"),
    search_fields=("name", "email", "tin_number", "nis_number"),
))

register(EntityDefinition(
    name="document",
    model=Document,
    references=(
        Reference("client_id", "client"),
        Reference("appointment_id", "appointment"),
        Reference("parent_document_id", "document"),
    ),
    dependents=(
        Dependent("document", "parent_document_id", DeletePolicy.CASCADE),
    ),
    filter_fields=("status", "category", "client_id", "appointment_id", "parent_document_id"),
    search_fields=("title", "description", "file_name"),
    prepare=prepare_document,
))

register(EntityDefinition(
    name="appointment",
    model=Appointment,
    references=(
        Reference("client_id", "client"),
        Reference("assigned_to_id", MEMBER),
    ),
    dependents=(
        Dependent("document", "appointment_id", DeletePolicy.DETACH),
    ),
    filter_fields=("status", "client_id", "assigned_to_id"),
    search_fields=("title", "location"),
    date_field="scheduled_at",
))

register(EntityDefinition(
    name="tax_calculation",
    model=TaxCalculation,
    references=(
        Reference("client_id", "client"),
    ),
    filter_fields=("tax_type", "tax_year", "status", "client_id"),
    search_fields=("period",),
))

register(EntityDefinition(
    name="invoice",
    model=Invoice,
    references=(
        Reference("client_id", "client"),
    ),
    filter_fields=("status", "client_id", "currency"),
    search_fields=("invoice_number", "notes"),
    date_field="issue_date",
    read_only_fields=("invoice_number", "subtotal", "vat_amount", "total"),
    prepare=prepare_invoice,
))


def get_definition(entity_type: str) -> EntityDefinition:
    try:
        return ENTITY_DEFINITIONS[entity_type]
    except KeyError:
        raise InvalidPayload(f"Unknown entity type: {entity_type}")
