"""
Authentication API routes.

Provides endpoints for user registration, login, organization selection
and the current user's profile.
"""
import logging
import re
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ...audit.changes import diff_changes, snapshot
from ...audit.recorder import AuditRecorder
from ...database.connection import get_db
from ...database.models import Organization, OrganizationMembership, User, UserRole, utcnow
from ...schemas.auth import (
    UserRegistrationRequest, UserLoginRequest, OrganizationSelectionRequest,
    AuthResponse, CurrentUserResponse, OrganizationInfo, UserInfo
)
from ...auth.dependencies import get_current_session, load_session
from ...auth.jwt_handler import JWTHandler, PasswordHandler
from ...tenancy.context import AuthSession, TenantContext
from ...tenancy.errors import OrganizationAccessDenied

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

DEFAULT_ORGANIZATION_SETTINGS = {"timezone": "America/Guyana", "currency": "GYD"}


def unique_slug(db: Session, name: str) -> str:
    """URL-safe slug for an organization name, suffixed until unused."""
    base = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "organization"
    slug, n = base, 1
    while db.query(Organization.id).filter(Organization.slug == slug).first():
        n += 1
        slug = f"{base}-{n}"
    return slug


def organizations_for(db: Session, session: AuthSession) -> List[OrganizationInfo]:
    roles = {m.organization_id: m.role for m in session.memberships}
    if not roles:
        return []
    organizations = db.query(Organization).filter(Organization.id.in_(roles.keys())).order_by(Organization.name).all()
    return [OrganizationInfo(id=org.id, name=org.name, role=roles[org.id]) for org in organizations]


def auth_response(db: Session, user: User, organization_id: Optional[UUID]) -> AuthResponse:
    access_token = JWTHandler.create_user_token(user.id, user.email, organization_id)
    session = load_session(db, access_token)
    return AuthResponse(
        access_token=access_token,
        user=UserInfo.model_validate(user),
        organizations=organizations_for(db, session),
        current_organization_id=organization_id,
    )


# PUBLIC_INTERFACE
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED,
             summary="Register new user and organization",
             description="Register a new user and create a new organization with the user as its admin.")
async def register_user(
    request: UserRegistrationRequest,
    http_request: Request,
    db: Session = Depends(get_db)
):
    """
    Register a new user and create a new organization.

    The organization, user, admin membership and the audit entry for the
    new organization are committed together.
    """
    if db.query(User).filter(User.email == request.email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    if db.query(Organization).filter(Organization.name == request.organization_name).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Organization with this name already exists"
        )

    if not PasswordHandler.validate_password_strength(request.password):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Password must contain letters and digits"
        )

    try:
        organization = Organization(
            name=request.organization_name,
            slug=unique_slug(db, request.organization_name),
            settings=dict(DEFAULT_ORGANIZATION_SETTINGS),
        )
        user = User(
            email=request.email,
            name=request.name,
            password_hash=PasswordHandler.hash_password(request.password),
        )
        db.add_all([organization, user])
        db.flush()

        db.add(OrganizationMembership(user_id=user.id, organization_id=organization.id, role=UserRole.ADMIN))
        db.flush()

        context = TenantContext(
            organization_id=organization.id,
            user_id=user.id,
            role=UserRole.ADMIN,
            ip_address=http_request.client.host if http_request.client else None,
            user_agent=http_request.headers.get("user-agent"),
        )
        AuditRecorder(db).record(
            context, "organization:create", "organization", organization.id,
            diff_changes(None, snapshot(organization)),
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Registered user {user.id} with organization {organization.id}")
    return auth_response(db, user, organization.id)


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthResponse,
             summary="User login",
             description="Authenticate user with email and password, returning an access token and the user's organizations.")
async def login_user(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return an access token.

    If ``organization_id`` is given it must be one of the user's active
    memberships. A user with exactly one organization has it selected
    automatically.
    """
    user = db.query(User).filter(User.email == request.email, User.active == True).first()
    if not user or not PasswordHandler.verify_password(request.password, user.password_hash):
        logger.warning(f"Failed login attempt for {request.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    user.last_login = utcnow()
    db.commit()

    session = load_session(db, JWTHandler.create_user_token(user.id, user.email))
    organization_id = request.organization_id
    if organization_id is not None:
        if session.membership_for(organization_id) is None:
            raise OrganizationAccessDenied()
    elif len(session.memberships) == 1:
        organization_id = session.memberships[0].organization_id

    return auth_response(db, user, organization_id)


# PUBLIC_INTERFACE
@router.post("/select-organization", response_model=AuthResponse,
             summary="Select organization",
             description="Issue a new token bound to one of the user's organizations.")
async def select_organization(
    request: OrganizationSelectionRequest,
    session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Select the organization subsequent requests act in.

    Raises:
        OrganizationAccessDenied: If the user is not an active member of the organization
    """
    if session.membership_for(request.organization_id) is None:
        logger.warning(f"User {session.user_id} tried to select organization {request.organization_id}")
        raise OrganizationAccessDenied()

    user = db.query(User).filter(User.id == session.user_id).first()
    return auth_response(db, user, request.organization_id)


# PUBLIC_INTERFACE
@router.get("/me", response_model=CurrentUserResponse,
            summary="Get current user",
            description="Get the authenticated user's profile and organizations.")
async def get_current_user_info(
    session: AuthSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Current user with the organizations they can act in."""
    user = db.query(User).filter(User.id == session.user_id).first()
    return CurrentUserResponse(
        user=UserInfo.model_validate(user),
        organizations=organizations_for(db, session),
        current_organization_id=session.selected_organization_id,
    )
