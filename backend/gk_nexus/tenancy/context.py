"""
Tenant context resolution.

Turns an authenticated session into the explicit ``TenantContext`` that every
repository and audit call takes as its first argument.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple
from uuid import UUID

from ..database.models import UserRole
from .errors import NoOrganizationSelected, OrganizationAccessDenied, Unauthenticated


@dataclass(frozen=True)
class Membership:
    """A user's role inside one organization."""

    organization_id: UUID
    role: UserRole


@dataclass(frozen=True)
class AuthSession:
    """What the auth collaborator knows about the caller."""

    user_id: UUID
    memberships: Tuple[Membership, ...] = ()
    selected_organization_id: Optional[UUID] = None

    def membership_for(self, organization_id: UUID) -> Optional[Membership]:
        for membership in self.memberships:
            if membership.organization_id == organization_id:
                return membership
        return None


@dataclass(frozen=True)
class TenantContext:
    """Acting organization, user and role for a single operation."""

    organization_id: UUID
    user_id: UUID
    role: UserRole
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def with_request_info(self, ip_address: Optional[str], user_agent: Optional[str]) -> "TenantContext":
        return replace(self, ip_address=ip_address, user_agent=user_agent)


class TenantContextResolver:
    """Single-step guard evaluated once per request."""

    # PUBLIC_INTERFACE
    def resolve(self, session: Optional[AuthSession], organization_id: Optional[UUID] = None) -> TenantContext:
        """
        Resolve the acting organization for a session.

        Args:
            session: Authenticated session, or None when no valid session exists
            organization_id: Organization explicitly chosen for this request

        Returns:
            TenantContext: Resolved context

        Raises:
            Unauthenticated: If there is no session
            OrganizationAccessDenied: If the chosen organization is not one of the user's
            NoOrganizationSelected: If nothing was chosen and the user has zero or several memberships
        """
        if session is None:
            raise Unauthenticated()

        chosen = organization_id or session.selected_organization_id
        if chosen is not None:
            membership = session.membership_for(chosen)
            if membership is None:
                raise OrganizationAccessDenied()
        elif len(session.memberships) == 1:
            membership = session.memberships[0]
        else:
            raise NoOrganizationSelected()

        return TenantContext(
            organization_id=membership.organization_id,
            user_id=session.user_id,
            role=membership.role,
        )


resolver = TenantContextResolver()


def resolve(session: Optional[AuthSession], organization_id: Optional[UUID] = None) -> TenantContext:
    return resolver.resolve(session, organization_id)
