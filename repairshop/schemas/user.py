from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field

from repairshop.models.enums import Role


class UserSummary(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class UserRead(UserSummary):
    phone: str = ""
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime


class UserCreate(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=8)
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    role: Role = Role.TECHNICIAN


class LoginRequest(BaseModel):
    email: str
    password: str
