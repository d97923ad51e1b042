"""Quotes API: staff listing and reminders, public customer responses, conversion to invoice."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_auth, require_capability_dep
from repairshop.errors import NotFound
from repairshop.models.enums import QuoteStatus
from repairshop.schemas import InvoiceRead, PublicQuoteRead, QuoteRead, RejectRequest
from repairshop.services import quote_workflow
from repairshop.services.auth import AuthContext
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/quotes", tags=["quotes"])

_view = require_capability_dep(Capability.VIEW_QUOTES)


@router.get("", response_model=list[QuoteRead])
async def list_quotes(
    status: QuoteStatus | None = None,
    customer_id: str | None = None,
    job_id: str | None = None,
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_quotes(
        db, status=status.value if status else None, customer_id=customer_id, job_id=job_id,
    )


@router.get("/{quote_id}", response_model=QuoteRead)
async def get_quote(
    quote_id: str,
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    quote = await crud.get_quote(db, quote_id)
    if not quote:
        raise NotFound("Quote not found")
    return quote


@router.post("/{quote_id}/accept")
async def accept_quote(
    quote_id: str,
    db: AsyncSession = Depends(get_db),
):
    quote = await quote_workflow.accept_quote(db, quote_id)
    return {
        "success": True,
        "quote": PublicQuoteRead.model_validate(quote).model_dump(mode="json"),
        "message": "Quote accepted successfully",
    }


@router.post("/{quote_id}/reject")
async def reject_quote(
    quote_id: str,
    body: RejectRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    reason = body.reason if body else None
    quote = await quote_workflow.reject_quote(db, quote_id, reason)
    return {
        "success": True,
        "quote": PublicQuoteRead.model_validate(quote).model_dump(mode="json"),
        "message": "Quote rejected",
    }


@router.post("/{quote_id}/send-reminder")
async def send_reminder(
    quote_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    quote = await quote_workflow.send_quote_reminder(db, auth, quote_id)
    return {
        "success": True,
        "message": "Reminder email sent successfully",
        "reminder_count": quote.reminder_count,
        "last_reminder_sent": quote.last_reminder_sent,
    }


@router.post("/{quote_id}/convert-to-invoice")
async def convert_to_invoice(
    quote_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    invoice = await quote_workflow.convert_quote_to_invoice(db, auth, quote_id)
    return {
        "success": True,
        "invoice": InvoiceRead.model_validate(invoice).model_dump(mode="json"),
        "message": "Quote converted to invoice successfully",
    }
