"""
Exception handlers translating tenancy errors into HTTP responses.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..tenancy.errors import (
    CrossTenantReference, ImmutableFieldViolation, OrganizationAccessDenied, TenancyError, Unauthenticated
)

logger = logging.getLogger(__name__)

# Attempts to reach across the tenant boundary.
BOUNDARY_VIOLATIONS = (OrganizationAccessDenied, CrossTenantReference, ImmutableFieldViolation)


async def tenancy_error_handler(request: Request, exc: TenancyError):
    if isinstance(exc, BOUNDARY_VIOLATIONS):
        logger.warning(f"Tenant boundary violation on {request.method} {request.url.path}: {exc.detail}")
    elif exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}", exc_info=exc)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Install the tenancy and catch-all exception handlers on ``app``."""
    app.add_exception_handler(TenancyError, tenancy_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
