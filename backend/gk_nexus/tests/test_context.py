"""
Tests for tenant context resolution.
"""
from uuid import uuid4

import pytest

from ..database.models import UserRole
from ..tenancy.context import AuthSession, Membership, TenantContextResolver, resolve
from ..tenancy.errors import NoOrganizationSelected, OrganizationAccessDenied, Unauthenticated


ORG_1 = uuid4()
ORG_2 = uuid4()
USER = uuid4()


class TestTenantContextResolver:
    """Test resolving the acting organization for a session."""

    def test_no_session_is_unauthenticated(self):
        with pytest.raises(Unauthenticated):
            resolve(None)

    def test_single_membership_is_used_implicitly(self):
        session = AuthSession(user_id=USER, memberships=(Membership(ORG_1, UserRole.ACCOUNTANT),))

        context = resolve(session)

        assert context.organization_id == ORG_1
        assert context.user_id == USER
        assert context.role == UserRole.ACCOUNTANT

    def test_explicit_organization_selects_membership(self):
        session = AuthSession(user_id=USER, memberships=(
            Membership(ORG_1, UserRole.ADMIN),
            Membership(ORG_2, UserRole.READ_ONLY),
        ))

        context = resolve(session, ORG_2)

        assert context.organization_id == ORG_2
        assert context.role == UserRole.READ_ONLY

    def test_selected_organization_from_session(self):
        session = AuthSession(
            user_id=USER,
            memberships=(Membership(ORG_1, UserRole.ADMIN), Membership(ORG_2, UserRole.MANAGER)),
            selected_organization_id=ORG_2,
        )

        assert resolve(session).organization_id == ORG_2

    def test_explicit_organization_overrides_selected(self):
        session = AuthSession(
            user_id=USER,
            memberships=(Membership(ORG_1, UserRole.ADMIN), Membership(ORG_2, UserRole.MANAGER)),
            selected_organization_id=ORG_2,
        )

        assert resolve(session, ORG_1).organization_id == ORG_1

    def test_organization_without_membership_is_denied(self):
        session = AuthSession(user_id=USER, memberships=(Membership(ORG_1, UserRole.ADMIN),))

        with pytest.raises(OrganizationAccessDenied):
            resolve(session, ORG_2)

    def test_stale_selected_organization_is_denied(self):
        session = AuthSession(
            user_id=USER,
            memberships=(Membership(ORG_1, UserRole.ADMIN),),
            selected_organization_id=ORG_2,
        )

        with pytest.raises(OrganizationAccessDenied):
            resolve(session)

    def test_several_memberships_require_a_choice(self):
        session = AuthSession(user_id=USER, memberships=(
            Membership(ORG_1, UserRole.ADMIN),
            Membership(ORG_2, UserRole.ADMIN),
        ))

        with pytest.raises(NoOrganizationSelected):
            resolve(session)

    def test_no_memberships_require_a_choice(self):
        with pytest.raises(NoOrganizationSelected):
            TenantContextResolver().resolve(AuthSession(user_id=USER))

    def test_request_info_is_attached_without_mutation(self):
        session = AuthSession(user_id=USER, memberships=(Membership(ORG_1, UserRole.ADMIN),))
        context = resolve(session)

        enriched = context.with_request_info("10.0.0.1", "pytest")

        assert enriched.ip_address == "10.0.0.1"
        assert enriched.user_agent == "pytest"
        assert context.ip_address is None
        assert enriched.organization_id == context.organization_id
