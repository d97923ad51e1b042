"""Job ticket request/response schemas."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairshop.models.enums import CommunicationChannel, CommunicationDirection, JobStatus, Priority
from repairshop.schemas.customer import CustomerRead
from repairshop.schemas.user import UserSummary


class StatusHistoryRead(BaseModel):
    id: str
    status: str
    notes: str = ""
    changed_by_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class JobCreate(BaseModel):
    customer_id: str
    appliance_type: str = Field(min_length=1)
    appliance_brand: str = Field(min_length=1)
    model_number: str = ""
    serial_number: str = ""
    issue_description: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    assigned_technician_id: str | None = None
    estimated_completion: datetime | None = None


class JobUpdate(BaseModel):
    priority: Priority | None = None
    appliance_type: str | None = None
    appliance_brand: str | None = None
    model_number: str | None = None
    serial_number: str | None = None
    issue_description: str | None = None
    diagnostic_results: str | None = None
    technician_notes: str | None = None
    labor_hours: float | None = Field(default=None, ge=0)
    assigned_technician_id: str | None = None
    estimated_completion: datetime | None = None


class StatusUpdate(BaseModel):
    status: JobStatus
    notes: str | None = None


class JobRead(BaseModel):
    id: str
    job_number: str
    status: str
    priority: str
    appliance_type: str
    appliance_brand: str
    model_number: str = ""
    serial_number: str = ""
    issue_description: str
    customer_notes: str = ""
    diagnostic_results: str = ""
    technician_notes: str = ""
    labor_hours: float = 0.0
    customer_id: str
    assigned_technician_id: str | None = None
    estimated_completion: datetime | None = None
    actual_completion: datetime | None = None
    quote_sent_at: datetime | None = None
    last_notification_sent: datetime | None = None
    created_at: datetime
    updated_at: datetime
    customer: CustomerRead | None = None
    assigned_technician: UserSummary | None = None
    created_by: UserSummary | None = None
    status_history: list[StatusHistoryRead] = []

    model_config = {"from_attributes": True}


class JobListResponse(BaseModel):
    jobs: list[JobRead]
    total: int
    page: int
    limit: int


class CommunicationCreate(BaseModel):
    direction: CommunicationDirection
    channel: CommunicationChannel
    subject: str = ""
    message: str = Field(min_length=1)


class CommunicationRead(BaseModel):
    id: str
    job_id: str
    direction: str
    channel: str
    subject: str = ""
    message: str
    created_by: UserSummary | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
