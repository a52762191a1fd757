"""
Appointment-related Pydantic schemas.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID

from ..database.models import AppointmentStatus
from .common import TenantScopedCreate, TenantScopedResponse, TenantScopedUpdate


class AppointmentCreateRequest(TenantScopedCreate):
    """Appointment creation request schema."""
    client_id: UUID = Field(..., description="Client the appointment is with")
    assigned_to_id: Optional[UUID] = Field(None, description="Staff member handling the appointment")
    title: str = Field(..., min_length=1, max_length=255, description="Appointment title")
    description: Optional[str] = Field(None, description="Appointment description")
    scheduled_at: datetime = Field(..., description="Start time")
    duration_minutes: int = Field(60, gt=0, le=24 * 60, description="Duration in minutes")
    location: Optional[str] = Field(None, max_length=255, description="Location")
    status: AppointmentStatus = Field(AppointmentStatus.SCHEDULED, description="Appointment status")


class AppointmentUpdateRequest(TenantScopedUpdate):
    """Appointment update request schema."""
    client_id: Optional[UUID] = Field(None, description="Client the appointment is with")
    assigned_to_id: Optional[UUID] = Field(None, description="Staff member handling the appointment")
    title: Optional[str] = Field(None, min_length=1, max_length=255, description="Appointment title")
    description: Optional[str] = Field(None, description="Appointment description")
    scheduled_at: Optional[datetime] = Field(None, description="Start time")
    duration_minutes: Optional[int] = Field(None, gt=0, le=24 * 60, description="Duration in minutes")
    location: Optional[str] = Field(None, max_length=255, description="Location")
    status: Optional[AppointmentStatus] = Field(None, description="Appointment status")
    cancellation_reason: Optional[str] = Field(None, description="Why the appointment was cancelled")


class AppointmentResponse(TenantScopedResponse):
    """Appointment response schema."""
    client_id: UUID = Field(..., description="Client ID")
    assigned_to_id: Optional[UUID] = Field(None, description="Assigned staff member ID")
    title: str = Field(..., description="Appointment title")
    description: Optional[str] = Field(None, description="Appointment description")
    scheduled_at: datetime = Field(..., description="Start time")
    duration_minutes: int = Field(..., description="Duration in minutes")
    location: Optional[str] = Field(None, description="Location")
    status: AppointmentStatus = Field(..., description="Appointment status")
    cancellation_reason: Optional[str] = Field(None, description="Cancellation reason")


class AppointmentsListResponse(BaseModel):
    """Appointments list response schema."""
    appointments: List[AppointmentResponse] = Field(..., description="List of appointments")
    total: int = Field(..., description="Total number of matching appointments")
    page: int = Field(..., description="Page number")
    per_page: int = Field(..., description="Items per page")
