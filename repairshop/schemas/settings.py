"""Shop settings schemas. The SMTP password is write-only."""

from __future__ import annotations
from pydantic import BaseModel, Field


class ShopSettingsRead(BaseModel):
    id: str
    company_name: str
    company_email: str = ""
    company_phone: str = ""
    company_address: str = ""
    business_hours: str = ""
    tax_rate: float
    currency: str
    job_number_prefix: str
    invoice_number_prefix: str
    quote_max_reminders: int = 3
    smtp_host: str = ""
    smtp_port: int | None = None
    smtp_user: str = ""
    smtp_password_set: bool = False
    smtp_from_name: str = ""
    smtp_from_email: str = ""
    terms_and_conditions: str = ""


class ShopSettingsUpdate(BaseModel):
    company_name: str | None = None
    company_email: str | None = None
    company_phone: str | None = None
    company_address: str | None = None
    business_hours: str | None = None
    tax_rate: float | None = Field(default=None, ge=0, le=100)
    currency: str | None = None
    job_number_prefix: str | None = None
    invoice_number_prefix: str | None = None
    quote_max_reminders: int | None = Field(default=None, ge=0)
    smtp_host: str | None = None
    smtp_port: int | None = Field(default=None, ge=1, le=65535)
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from_name: str | None = None
    smtp_from_email: str | None = None
    terms_and_conditions: str | None = None


class PublicSettings(BaseModel):
    company_name: str
    company_email: str = ""
    company_phone: str = ""
    company_address: str = ""
    business_hours: str = ""

    model_config = {"from_attributes": True}


class EmailTestRequest(BaseModel):
    email: str = Field(min_length=3)
