"""
Tests for the audit trail: completeness, atomicity with the business write,
immutability and organization-scoped querying.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from ..audit.changes import diff_changes
from ..audit.recorder import AuditFilter, AuditRecorder
from ..database.models import AuditLogEntry, Client, UserRole
from ..tenancy.errors import AuditLogImmutable, AuditWriteFailure, InvalidPayload, PermissionDenied
from ..tenancy.repository import TenantScopedRepository
from .test_base import create_member

T0 = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Returns T0 + 1 minute, T0 + 2 minutes, ... on successive calls."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def audit_outage():
    """Make audit inserts fail while ``outage.active`` is set."""
    outage = SimpleNamespace(active=False)

    def fail_insert(mapper, connection, target):
        if outage.active:
            raise OperationalError("INSERT INTO audit_log", {}, Exception("disk I/O error"))

    event.listen(AuditLogEntry, "before_insert", fail_insert)
    yield outage
    event.remove(AuditLogEntry, "before_insert", fail_insert)


@pytest.fixture
def clocked_repository(db_session) -> TenantScopedRepository:
    return TenantScopedRepository(db_session, AuditRecorder(db_session, clock=FakeClock()))


class TestAuditCompleteness:
    """Every successful mutation leaves exactly one matching entry."""

    def test_create_update_delete_are_each_recorded_once(self, repository, db_session, tenant_a):
        client = repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})
        client_id = client.id
        repository.clients.update(tenant_a.context, client_id, {"status": "active"})
        repository.clients.delete(tenant_a.context, client_id)

        entries = db_session.query(AuditLogEntry).filter(AuditLogEntry.entity_id == str(client_id)).all()

        assert sorted(e.action for e in entries) == ["client:create", "client:delete", "client:update"]
        for entry in entries:
            assert entry.entity_type == "client"
            assert entry.organization_id == tenant_a.organization.id
            assert entry.user_id == tenant_a.user.id

    def test_changes_capture_before_and_after(self, repository, tenant_a):
        client = repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms", "status": "pending_approval"})
        repository.clients.update(tenant_a.context, client.id, {"status": "active", "name": "Pomeroon Farms"})

        created, = repository.audit.query(tenant_a.context, AuditFilter(action="client:create"))
        updated, = repository.audit.query(tenant_a.context, AuditFilter(action="client:update"))

        assert created.changes["before"] is None
        assert created.changes["after"]["name"] == "Pomeroon Farms"
        assert created.changes["after"]["organization_id"] == str(tenant_a.organization.id)
        assert updated.changes == {"before": {"status": "pending_approval"}, "after": {"status": "active"}}

    def test_request_info_is_recorded(self, repository, tenant_a):
        context = tenant_a.context.with_request_info("190.80.1.1", "x" * 600)

        repository.clients.create(context, {"name": "Pomeroon Farms"})

        entry, = repository.audit.query(tenant_a.context)
        assert entry.ip_address == "190.80.1.1"
        assert len(entry.user_agent) == 500

    def test_failed_mutation_is_not_recorded(self, repository, db_session, tenant_a):
        with pytest.raises(InvalidPayload):
            repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms", "status": "bankrupt"})

        assert db_session.query(AuditLogEntry).count() == 0


class TestAuditAtomicity:
    """A failed audit write rolls back the business write."""

    def test_create_is_rolled_back(self, repository, db_session, tenant_a, audit_outage):
        audit_outage.active = True

        with pytest.raises(AuditWriteFailure):
            repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})

        assert db_session.query(Client).count() == 0
        assert db_session.query(AuditLogEntry).count() == 0

    def test_update_is_rolled_back(self, repository, db_session, tenant_a, audit_outage):
        client = repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})
        audit_outage.active = True

        with pytest.raises(AuditWriteFailure):
            repository.clients.update(tenant_a.context, client.id, {"name": "Renamed"})

        stored = db_session.query(Client).filter(Client.id == client.id).one()
        assert stored.name == "Pomeroon Farms"
        assert stored.version == 1

    def test_delete_is_rolled_back(self, repository, db_session, tenant_a, audit_outage):
        client = repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})
        audit_outage.active = True

        with pytest.raises(AuditWriteFailure):
            repository.clients.delete(tenant_a.context, client.id)

        assert db_session.query(Client).count() == 1


class TestAuditImmutability:
    """Entries can be neither changed nor removed through the ORM."""

    def test_update_is_rejected(self, repository, db_session, tenant_a):
        repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})
        entry = db_session.query(AuditLogEntry).one()

        entry.action = "client:tampered"
        with pytest.raises(AuditLogImmutable):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(AuditLogEntry).one().action == "client:create"

    def test_delete_is_rejected(self, repository, db_session, tenant_a):
        repository.clients.create(tenant_a.context, {"name": "Pomeroon Farms"})

        db_session.delete(db_session.query(AuditLogEntry).one())
        with pytest.raises(AuditLogImmutable):
            db_session.commit()
        db_session.rollback()

        assert db_session.query(AuditLogEntry).count() == 1


class TestAuditQuery:
    """Queries are organization-scoped, filterable and ordered by time."""

    def test_other_organization_entries_are_invisible(self, repository, tenant_a, tenant_b):
        repository.clients.create(tenant_a.context, {"name": "Alpha client"})
        repository.clients.create(tenant_b.context, {"name": "Beta client"})

        entries = repository.audit.query(tenant_b.context)

        assert len(entries) == 1
        assert entries[0].organization_id == tenant_b.organization.id

    def test_newest_first_by_default(self, clocked_repository, tenant_a):
        for name in ("First", "Second", "Third"):
            clocked_repository.clients.create(tenant_a.context, {"name": name})

        newest_first = clocked_repository.audit.query(tenant_a.context)
        oldest_first = clocked_repository.audit.query(tenant_a.context, AuditFilter(ascending=True))

        assert [e.changes["after"]["name"] for e in newest_first] == ["Third", "Second", "First"]
        assert [e.changes["after"]["name"] for e in oldest_first] == ["First", "Second", "Third"]

    def test_time_window_and_paging(self, clocked_repository, tenant_a):
        for name in ("First", "Second", "Third", "Fourth"):
            clocked_repository.clients.create(tenant_a.context, {"name": name})

        window = clocked_repository.audit.query(tenant_a.context, AuditFilter(
            start=T0 + timedelta(minutes=2), end=T0 + timedelta(minutes=3), ascending=True,
        ))
        page = clocked_repository.audit.query(tenant_a.context, AuditFilter(limit=1, offset=1))

        assert [e.changes["after"]["name"] for e in window] == ["Second", "Third"]
        assert [e.changes["after"]["name"] for e in page] == ["Third"]

    def test_filter_by_entity_and_user(self, repository, db_session, tenant_a):
        _, accountant = create_member(db_session, tenant_a.organization, "faith@alpha.example.com", UserRole.ACCOUNTANT)
        mine = repository.clients.create(tenant_a.context, {"name": "Mine"})
        repository.clients.create(accountant, {"name": "Theirs"})
        repository.clients.update(tenant_a.context, mine.id, {"notes": "checked"})

        by_entity = repository.audit.query(tenant_a.context, AuditFilter(entity_type="client", entity_id=str(mine.id)))
        by_user = repository.audit.query(tenant_a.context, AuditFilter(user_id=accountant.user_id))

        assert {e.action for e in by_entity} == {"client:create", "client:update"}
        assert [e.changes["after"]["name"] for e in by_user] == ["Theirs"]

    def test_requires_audit_permission(self, repository, db_session, tenant_a):
        _, accountant = create_member(db_session, tenant_a.organization, "faith@alpha.example.com", UserRole.ACCOUNTANT)

        with pytest.raises(PermissionDenied):
            repository.audit.query(accountant)


class TestDiffChanges:
    """Test the before/after structure builder."""

    def test_create_and_delete_shapes(self):
        row = {"id": "1", "name": "Pomeroon Farms"}

        assert diff_changes(None, row) == {"before": None, "after": row}
        assert diff_changes(row, None) == {"before": row, "after": None}

    def test_update_keeps_changed_fields_only(self):
        before = {"name": "A", "status": "active", "notes": None}
        after = {"name": "A", "status": "archived", "notes": "closed"}

        assert diff_changes(before, after) == {
            "before": {"notes": None, "status": "active"},
            "after": {"notes": "closed", "status": "archived"},
        }

    def test_no_change(self):
        assert diff_changes({"name": "A"}, {"name": "A"}) == {"before": {}, "after": {}}
