"""Public portal schemas: job tracking and self-service submission."""

from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairshop.models.enums import ContactMethod


class TrackedHistoryEntry(BaseModel):
    status: str
    notes: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}


class TrackedJob(BaseModel):
    job_number: str
    status: str
    priority: str
    appliance_type: str
    appliance_brand: str
    issue_description: str
    customer_name: str
    technician_name: str | None = None
    estimated_completion: datetime | None = None
    actual_completion: datetime | None = None
    created_at: datetime
    updated_at: datetime
    status_history: list[TrackedHistoryEntry]


class JobSubmission(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(min_length=1)
    appliance_brand: str = Field(min_length=1)
    appliance_type: str = Field(min_length=1)
    model_number: str = ""
    serial_number: str = ""
    issue_description: str = Field(min_length=10)
    preferred_contact_method: ContactMethod = ContactMethod.EMAIL


class SubmissionResult(BaseModel):
    success: bool = True
    job_number: str
    job_id: str
    message: str
