"""
Tenant-scoped repository.

All reads and writes of business entities go through here. Every query is
constrained to the caller's organization, every insert is stamped with it,
and every mutation is audited in the same transaction.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Generic, Iterator, List, Mapping, Optional, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import DateTime, Enum, JSON, Numeric, inspect, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..audit.changes import diff_changes, snapshot, to_json_value
from ..audit.recorder import AuditRecorder
from ..database.models import (
    Appointment, Client, Document, Invoice, OrganizationMembership, TaxCalculation
)
from . import permissions
from .context import TenantContext
from .errors import (
    ConcurrentModification, CrossTenantReference, DuplicateEntity, ImmutableFieldViolation,
    InvalidPayload, NotFound, ReferentialIntegrityViolation
)
from .registry import MEMBER, DeletePolicy, EntityDefinition, get_definition

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")
Payload = Union[BaseModel, Mapping[str, Any]]


@dataclass
class ListFilter:
    """Predicates applied inside the organization constraint."""

    equals: Dict[str, Any] = field(default_factory=dict)
    search: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = 50
    offset: int = 0


@dataclass
class Page(Generic[ModelT]):
    items: List[ModelT]
    total: int


def as_uuid(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def coerce_value(definition: EntityDefinition, key: str, column, value: Any) -> Any:
    """Convert a payload value to the Python type the column stores."""
    if value is None:
        return None
    column_type = column.type
    try:
        if isinstance(column_type, Enum) and column_type.enum_class is not None:
            return value if isinstance(value, column_type.enum_class) else column_type.enum_class(value)
        if isinstance(column_type, DateTime):
            if isinstance(value, str):
                value = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc)
            return value
        if isinstance(column_type, Numeric):
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if isinstance(column_type, JSON):
            return to_json_value(value)
    except (ValueError, TypeError, AttributeError, InvalidOperation):
        raise InvalidPayload(f"Invalid value for {definition.name}.{key}: {value!r}")
    return value


class TenantScopedRepository:
    """
    CRUD over business entities constrained to one organization per call.

    Typed facades (``clients``, ``documents``, ``appointments``,
    ``tax_calculations``, ``invoices``) expose the same operations without the
    entity type argument.
    """

    def __init__(self, db: Session, audit: Optional[AuditRecorder] = None):
        self.db = db
        self.audit = audit or AuditRecorder(db)
        self.clients: EntityRepository[Client] = EntityRepository(self, "client")
        self.documents: EntityRepository[Document] = EntityRepository(self, "document")
        self.appointments: EntityRepository[Appointment] = EntityRepository(self, "appointment")
        self.tax_calculations: EntityRepository[TaxCalculation] = EntityRepository(self, "tax_calculation")
        self.invoices: EntityRepository[Invoice] = EntityRepository(self, "invoice")

    # PUBLIC_INTERFACE
    def create(self, context: TenantContext, entity_type: str, payload: Payload):
        """
        Create an entity inside the context's organization.

        Any ``organization_id`` in the payload is ignored; the row is always
        stamped with ``context.organization_id``.

        Raises:
            CrossTenantReference: If a reference field does not resolve in the organization
            InvalidPayload: If the payload names unknown fields or holds invalid values
            AuditWriteFailure: If the audit entry could not be written
        """
        definition = get_definition(entity_type)
        permissions.require(context, permissions.WRITE)
        values = self._payload_values(definition, payload)

        with self._transaction():
            self._check_references(context, definition, values)
            if definition.prepare:
                values = definition.prepare(self.db, context, values, None)

            row = definition.model(**values)
            row.organization_id = context.organization_id
            row.created_by_id = context.user_id
            row.updated_by_id = context.user_id
            self.db.add(row)
            self.db.flush()

            self.audit.record(context, f"{definition.name}:create", definition.name, row.id, diff_changes(None, snapshot(row)))

        logger.info(f"Created {definition.name} {row.id} in organization {context.organization_id}")
        return row

    # PUBLIC_INTERFACE
    def get(self, context: TenantContext, entity_type: str, entity_id: Any):
        """
        Fetch one entity of the context's organization.

        Raises:
            NotFound: If the id does not exist in this organization, whether or not it exists elsewhere
        """
        definition = get_definition(entity_type)
        permissions.require(context, permissions.READ)
        return self._load(context, definition, entity_id)

    # PUBLIC_INTERFACE
    def update(
        self,
        context: TenantContext,
        entity_type: str,
        entity_id: Any,
        patch: Payload,
        expected_version: Optional[int] = None,
    ):
        """
        Apply a partial update to an entity of the context's organization.

        Raises:
            NotFound: As for ``get``
            ImmutableFieldViolation: If the patch tries to move the row to another organization
            CrossTenantReference: If a changed reference does not resolve in the organization
            ConcurrentModification: If ``expected_version`` is stale or another writer won
        """
        definition = get_definition(entity_type)
        permissions.require(context, permissions.WRITE)

        with self._transaction():
            row = self._load(context, definition, entity_id, for_update=True)
            if expected_version is not None and row.version != expected_version:
                raise ConcurrentModification()

            values = self._patch_values(context, definition, patch, row)
            self._check_references(context, definition, values)
            if definition.prepare:
                values = definition.prepare(self.db, context, values, row)

            before = snapshot(row)
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_by_id = context.user_id
            self.db.flush()

            self.audit.record(context, f"{definition.name}:update", definition.name, row.id, diff_changes(before, snapshot(row)))

        return row

    # PUBLIC_INTERFACE
    def list(self, context: TenantContext, entity_type: str, filter: Optional[ListFilter] = None) -> Page:
        """
        List entities of the context's organization.

        Additional predicates narrow the result but can never widen it past
        the organization constraint.
        """
        definition = get_definition(entity_type)
        permissions.require(context, permissions.READ)
        filter = filter or ListFilter()
        model = definition.model

        query = self.db.query(model).filter(model.organization_id == context.organization_id)

        columns = self._columns(definition)
        for key, value in filter.equals.items():
            if key not in definition.filter_fields:
                raise InvalidPayload(f"Cannot filter {definition.name} by {key}")
            if key in {ref.field for ref in definition.references}:
                value = as_uuid(value)
                if value is None:
                    return Page(items=[], total=0)
            else:
                value = coerce_value(definition, key, columns[key], value)
            query = query.filter(getattr(model, key) == value)

        if filter.search and definition.search_fields:
            term = filter.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{term}%"
            query = query.filter(or_(*[
                getattr(model, name).ilike(pattern, escape="\\") for name in definition.search_fields
            ]))

        date_column = getattr(model, definition.date_field)
        if filter.date_from:
            query = query.filter(date_column >= coerce_value(definition, definition.date_field, columns[definition.date_field], filter.date_from))
        if filter.date_to:
            query = query.filter(date_column <= coerce_value(definition, definition.date_field, columns[definition.date_field], filter.date_to))

        total = query.count()
        items = query.order_by(date_column.desc(), model.id).offset(filter.offset).limit(filter.limit).all()
        return Page(items=items, total=total)

    # PUBLIC_INTERFACE
    def delete(self, context: TenantContext, entity_type: str, entity_id: Any) -> None:
        """
        Delete an entity of the context's organization.

        Dependent rows are handled by the entity's declared policy: blocked,
        cascaded or detached. The whole operation is one transaction.

        Raises:
            NotFound: As for ``get``
            ReferentialIntegrityViolation: If a blocking dependent exists
        """
        definition = get_definition(entity_type)
        permissions.require(context, permissions.DELETE)

        with self._transaction():
            row = self._load(context, definition, entity_id, for_update=True)
            self._delete_row(context, definition, row)

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrentModification() from exc
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning(f"Integrity error rolled back: {exc.orig}")
            raise DuplicateEntity() from exc
        except Exception:
            self.db.rollback()
            raise

    def _columns(self, definition: EntityDefinition) -> Dict[str, Any]:
        return {attr.key: attr.columns[0] for attr in inspect(definition.model).column_attrs}

    def _load(self, context: TenantContext, definition: EntityDefinition, entity_id: Any, for_update: bool = False):
        ident = as_uuid(entity_id)
        if ident is None:
            raise NotFound(definition.name)

        query = self.db.query(definition.model).filter(
            definition.model.id == ident,
            definition.model.organization_id == context.organization_id,
        )
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            raise NotFound(definition.name)
        return row

    def _raw_values(self, definition: EntityDefinition, payload: Payload) -> Dict[str, Any]:
        data = payload.model_dump(exclude_unset=True) if isinstance(payload, BaseModel) else dict(payload)
        columns = self._columns(definition)
        unknown = sorted(set(data) - set(columns))
        if unknown:
            raise InvalidPayload(f"Unknown field(s) for {definition.name}: {', '.join(unknown)}")
        return data

    def _convert(self, definition: EntityDefinition, data: Dict[str, Any]) -> Dict[str, Any]:
        columns = self._columns(definition)
        for key, value in data.items():
            if value is None and not columns[key].nullable:
                raise InvalidPayload(f"{definition.name}.{key} cannot be null")
        reference_fields = {ref.field for ref in definition.references}
        return {
            key: value if key in reference_fields else coerce_value(definition, key, columns[key], value)
            for key, value in data.items()
        }

    def _payload_values(self, definition: EntityDefinition, payload: Payload) -> Dict[str, Any]:
        data = self._raw_values(definition, payload)
        return self._convert(definition, {k: v for k, v in data.items() if not definition.is_protected(k)})

    def _patch_values(self, context: TenantContext, definition: EntityDefinition, patch: Payload, row) -> Dict[str, Any]:
        data = self._raw_values(definition, patch)
        columns = self._columns(definition)
        for key in [k for k in data if definition.is_protected(k)]:
            value = data.pop(key)
            if key in ("organization_id", "id"):
                unchanged = as_uuid(value) == getattr(row, key)
            else:
                unchanged = coerce_value(definition, key, columns[key], value) == getattr(row, key)
            if not unchanged:
                if key == "organization_id":
                    logger.warning(
                        f"Rejected move of {definition.name} {row.id} from organization "
                        f"{context.organization_id} to {value} by user {context.user_id}"
                    )
                raise ImmutableFieldViolation(key)
        return self._convert(definition, data)

    def _check_references(self, context: TenantContext, definition: EntityDefinition, values: Dict[str, Any]) -> None:
        for ref in definition.references:
            if values.get(ref.field) is None:
                continue
            target_id = as_uuid(values[ref.field])
            if target_id is None or not self._reference_exists(context, ref.target, target_id):
                logger.warning(
                    f"Rejected cross-tenant reference {definition.name}.{ref.field}={values[ref.field]} "
                    f"in organization {context.organization_id} by user {context.user_id}"
                )
                raise CrossTenantReference(ref.field, "user" if ref.target == MEMBER else ref.target)
            values[ref.field] = target_id

    def _reference_exists(self, context: TenantContext, target: str, target_id: UUID) -> bool:
        if target == MEMBER:
            query = self.db.query(OrganizationMembership.id).filter(
                OrganizationMembership.user_id == target_id,
                OrganizationMembership.organization_id == context.organization_id,
                OrganizationMembership.active == True,
            )
        else:
            model = get_definition(target).model
            query = self.db.query(model.id).filter(
                model.id == target_id,
                model.organization_id == context.organization_id,
            )
        return query.first() is not None

    def _delete_row(self, context: TenantContext, definition: EntityDefinition, row) -> None:
        dependents = []
        for dependent in definition.dependents:
            dep_definition = get_definition(dependent.entity_type)
            query = self.db.query(dep_definition.model).filter(
                dep_definition.model.organization_id == context.organization_id,
                getattr(dep_definition.model, dependent.field) == row.id,
            )
            if dependent.policy is DeletePolicy.BLOCK:
                count = query.count()
                if count:
                    logger.info(f"Blocked delete of {definition.name} {row.id}: {count} dependent {dep_definition.name} row(s)")
                    raise ReferentialIntegrityViolation(definition.name, dep_definition.name, count)
            else:
                dependents.append((dependent, dep_definition, query.all()))

        for dependent, dep_definition, rows in dependents:
            for child in rows:
                if dependent.policy is DeletePolicy.CASCADE:
                    self._delete_row(context, dep_definition, child)
                else:
                    before = snapshot(child)
                    setattr(child, dependent.field, None)
                    child.updated_by_id = context.user_id
                    self.db.flush()
                    self.audit.record(
                        context, f"{dep_definition.name}:update", dep_definition.name, child.id,
                        diff_changes(before, snapshot(child)),
                    )

        before = snapshot(row)
        self.db.delete(row)
        self.db.flush()
        self.audit.record(context, f"{definition.name}:delete", definition.name, before["id"], diff_changes(before, None))


class EntityRepository(Generic[ModelT]):
    """Repository operations bound to one entity type."""

    def __init__(self, repository: TenantScopedRepository, entity_type: str):
        self.repository = repository
        self.entity_type = entity_type

    def create(self, context: TenantContext, payload: Payload) -> ModelT:
        return self.repository.create(context, self.entity_type, payload)

    def get(self, context: TenantContext, entity_id: Any) -> ModelT:
        return self.repository.get(context, self.entity_type, entity_id)

    def update(self, context: TenantContext, entity_id: Any, patch: Payload,
               expected_version: Optional[int] = None) -> ModelT:
        return self.repository.update(context, self.entity_type, entity_id, patch, expected_version)

    def list(self, context: TenantContext, filter: Optional[ListFilter] = None) -> Page:
        return self.repository.list(context, self.entity_type, filter)

    def delete(self, context: TenantContext, entity_id: Any) -> None:
        self.repository.delete(context, self.entity_type, entity_id)
