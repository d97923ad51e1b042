from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field


class CustomerCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = ""
    phone: str = Field(min_length=1)
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    notes: str = ""


class CustomerUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    notes: str | None = None


class CustomerRead(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    notes: str = ""
    created_at: datetime

    model_config = {"from_attributes": True}
