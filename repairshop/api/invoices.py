"""Invoices API: direct invoices, payments and emailing invoices to customers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_auth, require_capability_dep
from repairshop.errors import NotFound
from repairshop.models.enums import InvoiceStatus
from repairshop.schemas import (
    InvoiceCreate, InvoiceListResponse, InvoiceRead, PaymentCreate, PaymentRead,
)
from repairshop.services import billing
from repairshop.services.auth import AuthContext
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/invoices", tags=["invoices"])

_manage = require_capability_dep(Capability.MANAGE_INVOICES)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    status: InvoiceStatus | None = None,
    customer_id: str | None = None,
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    invoices, total = await crud.list_invoices(
        db,
        status=status.value if status else None,
        customer_id=customer_id,
        search=search,
        page=page,
        limit=limit,
    )
    return {"invoices": invoices, "total": total, "page": page, "limit": limit}


@router.post("", response_model=InvoiceRead, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await billing.create_invoice(
        db,
        auth,
        job_id=body.job_id,
        items=[item.model_dump(mode="json") for item in body.items],
        tax_rate=body.tax_rate,
        discount_amount=body.discount_amount,
        due_date=body.due_date,
        notes=body.notes,
        payment_terms=body.payment_terms,
    )


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: str,
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    invoice = await crud.get_invoice(db, invoice_id)
    if not invoice:
        raise NotFound("Invoice not found")
    return invoice


@router.get("/{invoice_id}/payments", response_model=list[PaymentRead])
async def list_payments(
    invoice_id: str,
    auth: AuthContext = Depends(_manage),
    db: AsyncSession = Depends(get_db),
):
    invoice = await crud.get_invoice(db, invoice_id)
    if not invoice:
        raise NotFound("Invoice not found")
    return invoice.payments


@router.post("/{invoice_id}/payments", response_model=InvoiceRead, status_code=201)
async def add_payment(
    invoice_id: str,
    body: PaymentCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await billing.record_payment(
        db,
        auth,
        invoice_id,
        amount=body.amount,
        payment_method=body.payment_method,
        payment_date=body.payment_date,
        reference_number=body.reference_number,
        notes=body.notes,
    )


@router.post("/{invoice_id}/email")
async def email_invoice(
    invoice_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    invoice = await billing.email_invoice(db, auth, invoice_id)
    return {
        "message": "Invoice sent successfully",
        "recipient": invoice.customer.email,
        "status": invoice.status,
    }
