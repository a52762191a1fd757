"""
Authentication dependencies for FastAPI endpoints.

Provides dependency functions turning a bearer token into an ``AuthSession``,
resolving the ``TenantContext`` for the request and handing out the
request-scoped repository and audit recorder.
"""
from typing import Optional
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..audit.recorder import AuditRecorder
from ..database.connection import get_db
from ..database.models import Organization, OrganizationMembership, User
from ..tenancy.context import AuthSession, Membership, TenantContext, resolve
from ..tenancy.errors import OrganizationAccessDenied, Unauthenticated
from ..tenancy.repository import TenantScopedRepository, as_uuid
from .jwt_handler import JWTHandler

security = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def load_session(db: Session, token: str) -> Optional[AuthSession]:
    """
    Build the session for a bearer token.

    Memberships are read from the database on every call, so a revoked
    membership or a deactivated organization stops working immediately.

    Args:
        db: Database session
        token: Encoded JWT access token

    Returns:
        Optional[AuthSession]: Session, or None if the token is invalid or names an inactive user
    """
    payload = JWTHandler.verify_token(token)
    if payload is None:
        return None

    user_id = as_uuid(payload.get("sub"))
    if user_id is None:
        return None
    user = db.query(User).filter(User.id == user_id, User.active == True).first()
    if not user:
        return None

    rows = db.query(OrganizationMembership).join(Organization).filter(
        OrganizationMembership.user_id == user.id,
        OrganizationMembership.active == True,
        Organization.active == True,
    ).all()

    return AuthSession(
        user_id=user.id,
        memberships=tuple(Membership(organization_id=m.organization_id, role=m.role) for m in rows),
        selected_organization_id=as_uuid(payload["organization_id"]) if payload.get("organization_id") else None,
    )


# PUBLIC_INTERFACE
async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[AuthSession]:
    """Session for the request's bearer token, or None when unauthenticated."""
    if not credentials:
        return None
    return load_session(db, credentials.credentials)


# PUBLIC_INTERFACE
async def get_current_session(
    session: Optional[AuthSession] = Depends(get_session)
) -> AuthSession:
    """
    Require an authenticated session without requiring an organization.

    Raises:
        Unauthenticated: If the token is missing or invalid
    """
    if session is None:
        raise Unauthenticated()
    return session


# PUBLIC_INTERFACE
async def get_tenant_context(
    request: Request,
    x_organization_id: Optional[str] = Header(None, alias="X-Organization-ID"),
    session: Optional[AuthSession] = Depends(get_session),
) -> TenantContext:
    """
    Resolve the tenant context for the request.

    Args:
        request: Incoming request; client address and user agent go to audit entries
        x_organization_id: Organization chosen for this request, overriding the token's
        session: Authenticated session

    Returns:
        TenantContext: Resolved context

    Raises:
        Unauthenticated: If there is no valid session
        OrganizationAccessDenied: If the chosen organization is not one of the user's
        NoOrganizationSelected: If no organization could be determined
    """
    if session is None:
        raise Unauthenticated()

    organization_id = None
    if x_organization_id:
        organization_id = as_uuid(x_organization_id)
        if organization_id is None:
            raise OrganizationAccessDenied()

    context = resolve(session, organization_id)
    return context.with_request_info(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


# PUBLIC_INTERFACE
def get_repository(db: Session = Depends(get_db)) -> TenantScopedRepository:
    return TenantScopedRepository(db)


# PUBLIC_INTERFACE
def get_audit_recorder(db: Session = Depends(get_db)) -> AuditRecorder:
    return AuditRecorder(db)
