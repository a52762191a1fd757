"""
Organization management API routes.

Provides endpoints for reading and updating the current organization and
granting users membership in it. Every change is audited.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...audit.changes import diff_changes, snapshot
from ...audit.recorder import AuditRecorder
from ...database.connection import get_db
from ...database.models import Organization, OrganizationMembership, User, UserRole
from ...schemas.organization import (
    OrganizationUpdateRequest, OrganizationResponse, MemberCreateRequest, MembershipResponse
)
from ...auth.dependencies import get_tenant_context
from ...auth.jwt_handler import PasswordHandler
from ...tenancy import permissions
from ...tenancy.context import TenantContext
from ...tenancy.errors import PermissionDenied

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


def _current_organization(db: Session, context: TenantContext) -> Organization:
    return db.query(Organization).filter(Organization.id == context.organization_id).first()


# PUBLIC_INTERFACE
@router.get("/current", response_model=OrganizationResponse,
            summary="Get current organization",
            description="Get the organization the request acts in.")
async def get_current_organization(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    return _current_organization(db, context)


# PUBLIC_INTERFACE
@router.put("/current", response_model=OrganizationResponse,
            summary="Update current organization",
            description="Rename the organization or merge new settings into it. Requires admin role.")
async def update_current_organization(
    request: OrganizationUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """
    Update the current organization.

    ``settings`` is merged key by key into the existing settings. The change
    is recorded as ``organization:update``.
    """
    permissions.require(context, permissions.MANAGE_ORGANIZATION)

    organization = _current_organization(db, context)
    if request.name is not None and request.name != organization.name:
        if db.query(Organization.id).filter(Organization.name == request.name).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Organization with this name already exists"
            )

    try:
        before = snapshot(organization)
        if request.name is not None:
            organization.name = request.name
        if request.settings is not None:
            organization.settings = {**(organization.settings or {}), **request.settings}
        db.flush()

        changes = diff_changes(before, snapshot(organization))
        if changes["after"]:
            AuditRecorder(db).record(context, "organization:update", "organization", organization.id, changes)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(organization)
    return organization


# PUBLIC_INTERFACE
@router.post("/current/members", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED,
             summary="Grant membership",
             description="Give a user a role in the current organization, creating the user if needed. Requires admin role.")
async def add_member(
    request: MemberCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db)
):
    """
    Grant a user membership in the current organization.

    An existing inactive membership is reactivated with the new role. Only a
    super admin can grant the super admin role. The grant is recorded as
    ``membership:create``.
    """
    permissions.require(context, permissions.MANAGE_ORGANIZATION)
    if request.role == UserRole.SUPER_ADMIN and context.role != UserRole.SUPER_ADMIN:
        raise PermissionDenied("Only a super admin can grant the super admin role")

    try:
        user = db.query(User).filter(User.email == request.email).first()
        if user is None:
            if not request.name or not request.password:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="name and password are required for a new user"
                )
            user = User(
                email=request.email,
                name=request.name,
                password_hash=PasswordHandler.hash_password(request.password),
            )
            db.add(user)
            db.flush()

        membership = db.query(OrganizationMembership).filter(
            OrganizationMembership.user_id == user.id,
            OrganizationMembership.organization_id == context.organization_id,
        ).first()
        if membership is not None and membership.active:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User is already a member of this organization"
            )

        before = snapshot(membership) if membership is not None else None
        if membership is None:
            membership = OrganizationMembership(
                user_id=user.id,
                organization_id=context.organization_id,
                role=request.role,
            )
            db.add(membership)
        else:
            membership.role = request.role
            membership.active = True
        db.flush()

        AuditRecorder(db).record(
            context, "membership:create", "membership", membership.id,
            diff_changes(before, snapshot(membership)),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"User {user.id} granted {request.role.value} in organization {context.organization_id}")
    return MembershipResponse(
        user_id=user.id,
        organization_id=membership.organization_id,
        email=user.email,
        name=user.name,
        role=membership.role,
        active=membership.active,
    )
