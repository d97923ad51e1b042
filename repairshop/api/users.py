"""Users API — technician roster and admin user creation."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_capability_dep
from repairshop.errors import ValidationFailed
from repairshop.schemas import UserCreate, UserRead, UserSummary
from repairshop.services.auth import AuthContext, hash_password
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/technicians", response_model=list[UserSummary])
async def list_technicians(
    auth: AuthContext = Depends(require_capability_dep(Capability.VIEW_JOBS)),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_technicians(db)


@router.post("", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    auth: AuthContext = Depends(require_capability_dep(Capability.MANAGE_USERS)),
    db: AsyncSession = Depends(get_db),
):
    if await crud.get_user_by_email(db, body.email):
        raise ValidationFailed("A user with this email already exists")
    return await crud.create_user(
        db,
        email=body.email,
        password_hash=hash_password(body.password),
        role=body.role.value,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
    )
