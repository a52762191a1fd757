"""
Typed failures raised by the tenancy and audit layers.

Every error carries the HTTP status the API layer answers with, so route
handlers never translate them one by one.
"""
from typing import Optional


class TenancyError(Exception):
    """Base class for tenant-context, repository and audit failures."""

    status_code = 400
    default_detail = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(TenancyError):
    status_code = 401
    default_detail = "Could not validate credentials"


class NoOrganizationSelected(TenancyError):
    status_code = 400
    default_detail = "No organization selected"


class OrganizationAccessDenied(TenancyError):
    status_code = 403
    default_detail = "Access to this organization is not allowed"


class PermissionDenied(TenancyError):
    status_code = 403
    default_detail = "Insufficient permissions"


class NotFound(TenancyError):
    """Entity absent, or owned by another organization. Callers cannot tell which."""

    status_code = 404

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"{entity_type.replace('_', ' ').capitalize()} not found")


class CrossTenantReference(TenancyError):
    """A reference field does not resolve inside the caller's organization."""

    status_code = 400

    def __init__(self, field: str, target_type: str):
        self.field = field
        self.target_type = target_type
        super().__init__(f"{field} does not reference a {target_type.replace('_', ' ')} in this organization")


class ReferentialIntegrityViolation(TenancyError):
    status_code = 409

    def __init__(self, entity_type: str, dependent_type: str, count: int):
        self.entity_type = entity_type
        self.dependent_type = dependent_type
        self.count = count
        super().__init__(
            f"Cannot delete {entity_type.replace('_', ' ')} with {count} dependent "
            f"{dependent_type.replace('_', ' ')} record(s)"
        )


class ImmutableFieldViolation(TenancyError):
    status_code = 400

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} cannot be changed")


class ConcurrentModification(TenancyError):
    status_code = 409
    default_detail = "Record was modified by another request"


class InvalidPayload(TenancyError):
    status_code = 422


class AuditWriteFailure(TenancyError):
    status_code = 500
    default_detail = "Audit log could not be written; operation rolled back"


class AuditLogImmutable(TenancyError):
    status_code = 500
    default_detail = "Audit log entries cannot be modified or deleted"


class DuplicateEntity(TenancyError):
    status_code = 409
    default_detail = "Record conflicts with an existing record"
