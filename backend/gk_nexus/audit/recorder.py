"""
Audit recorder.

Appends one immutable ``AuditLogEntry`` per mutating operation inside the
caller's transaction and answers organization-scoped audit queries.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database.models import AuditLogEntry, utcnow
from ..tenancy import permissions
from ..tenancy.context import TenantContext
from ..tenancy.errors import AuditLogImmutable, AuditWriteFailure

logger = logging.getLogger(__name__)


@event.listens_for(AuditLogEntry, "before_update")
def _reject_update(mapper, connection, target):
    raise AuditLogImmutable()


@event.listens_for(AuditLogEntry, "before_delete")
def _reject_delete(mapper, connection, target):
    raise AuditLogImmutable()


def _as_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc) if value.tzinfo else value


@dataclass
class AuditFilter:
    """Predicates for ``AuditRecorder.query``; all optional."""

    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    user_id: Optional[UUID] = None
    action: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    ascending: bool = False
    limit: int = 100
    offset: int = 0


class AuditRecorder:
    """Durable, organization-scoped audit trail."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    # PUBLIC_INTERFACE
    def record(
        self,
        context: TenantContext,
        action: str,
        entity_type: str,
        entity_id: Any,
        changes: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        """
        Append an audit entry to the current transaction.

        The entry is flushed but not committed; the caller commits it together
        with the business write it describes.

        Args:
            context: Tenant context of the operation
            action: Verb-qualified action, e.g. ``client:create``
            entity_type: Entity type name
            entity_id: Identifier of the acted-upon entity
            changes: Before/after structure from ``diff_changes``

        Returns:
            AuditLogEntry: The pending entry

        Raises:
            AuditWriteFailure: If the entry could not be written
        """
        entry = AuditLogEntry(
            organization_id=context.organization_id,
            user_id=context.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            changes=changes,
            ip_address=context.ip_address,
            user_agent=context.user_agent[:500] if context.user_agent else None,
            created_at=self.clock(),
        )
        try:
            self.db.add(entry)
            self.db.flush()
        except SQLAlchemyError as exc:
            logger.error(f"Audit write failed for {action} on {entity_type} {entity_id}: {exc}")
            raise AuditWriteFailure() from exc
        return entry

    # PUBLIC_INTERFACE
    def query(self, context: TenantContext, filter: Optional[AuditFilter] = None) -> List[AuditLogEntry]:
        """
        Return audit entries of the context's organization.

        Args:
            context: Tenant context; only its organization's entries are visible
            filter: Optional predicates, ordering and paging

        Returns:
            List[AuditLogEntry]: Matching entries, newest first unless ``ascending``
        """
        permissions.require(context, permissions.AUDIT_READ)
        filter = filter or AuditFilter()

        query = self.db.query(AuditLogEntry).filter(
            AuditLogEntry.organization_id == context.organization_id
        )
        if filter.entity_type:
            query = query.filter(AuditLogEntry.entity_type == filter.entity_type)
        if filter.entity_id:
            query = query.filter(AuditLogEntry.entity_id == str(filter.entity_id))
        if filter.user_id:
            query = query.filter(AuditLogEntry.user_id == filter.user_id)
        if filter.action:
            query = query.filter(AuditLogEntry.action == filter.action)
        if filter.start:
            query = query.filter(AuditLogEntry.created_at >= _as_utc(filter.start))
        if filter.end:
            query = query.filter(AuditLogEntry.created_at <= _as_utc(filter.end))

        order = AuditLogEntry.created_at.asc() if filter.ascending else AuditLogEntry.created_at.desc()
        return query.order_by(order).offset(filter.offset).limit(filter.limit).all()
