"""Customer API — create, search, view, update."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_capability_dep
from repairshop.errors import NotFound
from repairshop.schemas import CustomerCreate, CustomerRead, CustomerUpdate, JobRead
from repairshop.services.auth import AuthContext
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/customers", tags=["customers"])

_manage = require_capability_dep(Capability.MANAGE_CUSTOMERS)


@router.post("", response_model=CustomerRead, status_code=201)
async def create_customer(
    body: CustomerCreate,
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    data = body.model_dump()
    data["email"] = data["email"].strip().lower()
    return await crud.create_customer(db, **data)


@router.get("", response_model=list[CustomerRead])
async def list_customers(
    search: str = "",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_customers(db, search=search, limit=limit, offset=offset)


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    customer = await crud.get_customer(db, customer_id)
    if not customer:
        raise NotFound("Customer not found")

    jobs, _ = await crud.list_jobs(db, customer_id=customer.id, limit=100)
    return {
        **CustomerRead.model_validate(customer).model_dump(mode="json"),
        "jobs": [JobRead.model_validate(j).model_dump(mode="json") for j in jobs],
    }


@router.put("/{customer_id}", response_model=CustomerRead)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    customer = await crud.get_customer(db, customer_id)
    if not customer:
        raise NotFound("Customer not found")

    updates = body.model_dump(exclude_none=True)
    if "email" in updates:
        updates["email"] = updates["email"].strip().lower()
    return await crud.update_customer(db, customer, **updates)
