"""
Role checks applied to every repository and audit operation.
"""
from .context import TenantContext
from .errors import PermissionDenied
from ..database.models import UserRole

READ = "read"
WRITE = "write"
DELETE = "delete"
AUDIT_READ = "audit:read"
MANAGE_ORGANIZATION = "organization:manage"

_STAFF = {
    UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.MANAGER,
    UserRole.ACCOUNTANT, UserRole.CLIENT_SERVICE,
}
_SUPERVISORS = {UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.MANAGER}

ROLE_PERMISSIONS = {
    READ: _STAFF | {UserRole.READ_ONLY},
    WRITE: _STAFF,
    DELETE: _SUPERVISORS,
    AUDIT_READ: _SUPERVISORS,
    MANAGE_ORGANIZATION: {UserRole.SUPER_ADMIN, UserRole.ADMIN},
}


def has_permission(role: UserRole, permission: str) -> bool:
    return role in ROLE_PERMISSIONS.get(permission, set())


def require(context: TenantContext, permission: str) -> None:
    """Raise PermissionDenied unless the context's role grants ``permission``."""
    if not has_permission(context.role, permission):
        raise PermissionDenied(f"Role '{context.role.value}' is not allowed to {permission}")
