"""
Appointment API routes.

Appointments belong to a client of the current organization and may be
assigned to one of its active members.
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from ...database.models import AppointmentStatus
from ...schemas.appointment import (
    AppointmentCreateRequest, AppointmentUpdateRequest, AppointmentResponse, AppointmentsListResponse
)
from ...auth.dependencies import get_repository, get_tenant_context
from ...tenancy.context import TenantContext
from ...tenancy.repository import TenantScopedRepository
from .common import list_filter

router = APIRouter(prefix="/appointments", tags=["Appointments"])


# PUBLIC_INTERFACE
@router.post("/", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED,
             summary="Schedule appointment",
             description="Schedule an appointment with a client of the current organization.")
async def create_appointment(
    request: AppointmentCreateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.appointments.create(context, request)


# PUBLIC_INTERFACE
@router.get("/", response_model=AppointmentsListResponse,
            summary="List appointments",
            description="Get a paginated list of appointments, latest scheduled first.")
async def list_appointments(
    client_id: Optional[UUID] = Query(None, description="Filter by client"),
    assigned_to_id: Optional[UUID] = Query(None, description="Filter by assigned staff member"),
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status", description="Filter by status"),
    q: Optional[str] = Query(None, description="Search title or location"),
    scheduled_from: Optional[datetime] = Query(None, description="Scheduled at or after"),
    scheduled_to: Optional[datetime] = Query(None, description="Scheduled at or before"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(10, ge=1, le=100, description="Items per page"),
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    result = repository.appointments.list(context, list_filter(
        page, per_page, q, scheduled_from, scheduled_to,
        client_id=client_id, assigned_to_id=assigned_to_id, status=status_filter,
    ))
    return AppointmentsListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in result.items],
        total=result.total,
        page=page,
        per_page=per_page,
    )


# PUBLIC_INTERFACE
@router.get("/{appointment_id}", response_model=AppointmentResponse,
            summary="Get appointment",
            description="Get an appointment of the current organization.")
async def get_appointment(
    appointment_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    return repository.appointments.get(context, appointment_id)


# PUBLIC_INTERFACE
@router.put("/{appointment_id}", response_model=AppointmentResponse,
            summary="Update appointment",
            description="Reschedule, reassign or change the status of an appointment.")
async def update_appointment(
    appointment_id: UUID,
    request: AppointmentUpdateRequest,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    patch, expected_version = request.split()
    return repository.appointments.update(context, appointment_id, patch, expected_version)


# PUBLIC_INTERFACE
@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete appointment",
               description="Delete an appointment. Documents collected at it are kept and unlinked.")
async def delete_appointment(
    appointment_id: UUID,
    context: TenantContext = Depends(get_tenant_context),
    repository: TenantScopedRepository = Depends(get_repository)
):
    repository.appointments.delete(context, appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
