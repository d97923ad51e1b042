"""Quote lifecycle: send, customer accept/reject, conversion to an invoice.

A quote carries at most one customer response and is converted at most once.
Accept and reject are public operations keyed by quote id (the links in the
quote email); every other operation requires a staff actor.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.db import crud
from repairshop.errors import (
    ConflictAlreadyConverted,
    ConflictAlreadyResponded,
    ConflictDuplicateInvoice,
    DeliveryFailed,
    Expired,
    Internal,
    InvalidQuoteState,
    NotFound,
    ValidationFailed,
)
from repairshop.models import Invoice, InvoiceItem, Quote, QuoteItem, StatusHistory
from repairshop.models.base import as_utc, utcnow
from repairshop.models.enums import (
    CustomerResponse,
    EmailType,
    InvoiceStatus,
    ItemType,
    JobStatus,
    QuoteStatus,
)
from repairshop.services.auth import AuthContext
from repairshop.services.billing import (
    compute_totals,
    default_due_date,
    line_total,
    raise_invoice_write_error,
)
from repairshop.services.email import send_email
from repairshop.services.notifications import (
    DEFAULT_QUOTE_HOOKS,
    Hook,
    QuoteSent,
    render_email,
    run_post_commit_hooks,
)
from repairshop.services.numbering import next_invoice_number
from repairshop.services.permissions import Capability, ensure_job_access, require_capability

logger = logging.getLogger(__name__)


async def _load_quote(db: AsyncSession, quote_id: str) -> Quote:
    quote = await crud.get_quote(db, quote_id)
    if not quote:
        raise NotFound("Quote not found")
    return quote


def _ensure_not_responded(quote: Quote) -> None:
    if quote.customer_response:
        raise ConflictAlreadyResponded(quote.customer_response)


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error while %s", action)
        raise Internal(f"Failed to {action}") from exc


def _quote_number(job_number: str, existing: int) -> str:
    suffix = "Q" if existing == 0 else f"Q{existing + 1}"
    return f"{job_number}-{suffix}"


async def send_quote(
    db: AsyncSession,
    actor: AuthContext | None,
    job_id: str,
    items: list[dict],
    tax_rate: float | None = None,
    discount_amount: float = 0.0,
    notes: str = "",
    valid_days: int | None = None,
    hooks: Iterable[Hook] = DEFAULT_QUOTE_HOOKS,
) -> Quote:
    """Create a SENT quote for a job and park the job awaiting approval."""
    require_capability(actor, Capability.SEND_QUOTE)
    if not items:
        raise ValidationFailed("At least one item is required")

    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    ensure_job_access(actor, job)

    shop = await crud.get_shop_settings(db)
    if tax_rate is None:
        tax_rate = shop.tax_rate if shop else 0.0
    totals = compute_totals(items, tax_rate, discount_amount)

    now = utcnow()
    days = valid_days if valid_days is not None else get_settings().billing.quote_valid_days
    existing = await crud.list_quotes(db, job_id=job.id)

    quote = Quote(
        quote_number=_quote_number(job.job_number, len(existing)),
        job_id=job.id,
        customer_id=job.customer_id,
        issued_by_id=actor.user_id,
        status=QuoteStatus.SENT.value,
        issue_date=now,
        valid_until=now + timedelta(days=days),
        subtotal=totals.subtotal,
        tax_rate=totals.tax_rate,
        tax_amount=totals.tax_amount,
        discount_amount=totals.discount_amount,
        total_amount=totals.total_amount,
        notes=notes,
        items=[
            QuoteItem(
                position=i,
                description=item["description"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=line_total(item["quantity"], item["unit_price"]),
                item_type=item.get("item_type") or ItemType.PART.value,
            )
            for i, item in enumerate(items)
        ],
    )
    db.add(quote)

    job.status = JobStatus.AWAITING_CUSTOMER_APPROVAL.value
    job.quote_sent_at = now
    db.add(StatusHistory(
        job_id=job.id,
        status=JobStatus.AWAITING_CUSTOMER_APPROVAL.value,
        notes=f"Quote sent: {quote.quote_number} - Total: {totals.total_amount:.2f}",
        changed_by_id=actor.user_id,
    ))
    await _commit(db, "send quote")

    logger.info("Sent quote %s for job %s", quote.quote_number, job.job_number)
    quote_id = quote.id
    await run_post_commit_hooks(
        db, hooks, QuoteSent(quote_id=quote_id, job_id=job.id, actor_id=actor.user_id)
    )
    return await crud.get_quote(db, quote_id)


async def accept_quote(db: AsyncSession, quote_id: str) -> Quote:
    """Customer accepts a quote; the job moves back into progress."""
    quote = await _load_quote(db, quote_id)

    now = utcnow()
    if as_utc(quote.valid_until) < now:
        raise Expired()
    _ensure_not_responded(quote)

    quote.status = QuoteStatus.ACCEPTED.value
    quote.customer_response = CustomerResponse.ACCEPTED.value
    quote.customer_response_date = now

    quote.job.status = JobStatus.IN_PROGRESS.value
    db.add(StatusHistory(
        job_id=quote.job_id,
        status=JobStatus.IN_PROGRESS.value,
        notes=f"Quote {quote.quote_number} accepted by customer",
    ))
    await _commit(db, "accept quote")

    logger.info("Quote %s accepted by customer", quote.quote_number)
    return await crud.get_quote(db, quote.id)


async def reject_quote(db: AsyncSession, quote_id: str, reason: str | None = None) -> Quote:
    """Customer declines a quote; the job returns to OPEN."""
    quote = await _load_quote(db, quote_id)
    _ensure_not_responded(quote)

    quote.status = QuoteStatus.REJECTED.value
    quote.customer_response = CustomerResponse.REJECTED.value
    quote.customer_response_date = utcnow()
    quote.rejection_reason = reason or None

    quote.job.status = JobStatus.OPEN.value
    note = f"Quote {quote.quote_number} rejected by customer"
    if reason:
        note = f"{note}: {reason}"
    db.add(StatusHistory(job_id=quote.job_id, status=JobStatus.OPEN.value, notes=note))
    await _commit(db, "reject quote")

    logger.info("Quote %s rejected by customer", quote.quote_number)
    return await crud.get_quote(db, quote.id)


async def convert_quote_to_invoice(
    db: AsyncSession, actor: AuthContext | None, quote_id: str
) -> Invoice:
    """Turn an accepted quote into a DRAFT invoice with the quote's items and totals."""
    require_capability(actor, Capability.CONVERT_QUOTE)
    quote = await _load_quote(db, quote_id)

    # A converted quote is no longer ACCEPTED, so this check comes first.
    if quote.converted_to_invoice_id:
        raise ConflictAlreadyConverted()
    if quote.status != QuoteStatus.ACCEPTED.value:
        raise InvalidQuoteState()
    if await crud.get_invoice_for_job(db, quote.job_id):
        raise ConflictDuplicateInvoice()

    shop = await crud.get_shop_settings(db)
    invoice_number = await next_invoice_number(db, shop.invoice_number_prefix if shop else None)

    invoice = Invoice(
        invoice_number=invoice_number,
        job_id=quote.job_id,
        customer_id=quote.customer_id,
        issued_by_id=actor.user_id,
        status=InvoiceStatus.DRAFT.value,
        issue_date=utcnow(),
        due_date=default_due_date(),
        subtotal=quote.subtotal,
        tax_rate=quote.tax_rate,
        tax_amount=quote.tax_amount,
        discount_amount=quote.discount_amount,
        total_amount=quote.total_amount,
        paid_amount=0.0,
        balance_amount=quote.total_amount,
        notes=quote.notes,
        payment_terms=get_settings().billing.payment_terms,
        items=[
            InvoiceItem(
                position=item.position,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
                item_type=item.item_type,
            )
            for item in quote.items
        ],
    )
    job_id, quote_number = quote.job_id, quote.quote_number
    db.add(invoice)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        await raise_invoice_write_error(db, job_id, "convert quote", exc)

    quote.status = QuoteStatus.CONVERTED_TO_INVOICE.value
    quote.converted_to_invoice_id = invoice.id
    quote.job.status = JobStatus.IN_PROGRESS.value
    db.add(StatusHistory(
        job_id=quote.job_id,
        status=JobStatus.IN_PROGRESS.value,
        notes=f"Quote {quote.quote_number} converted to invoice {invoice_number}",
        changed_by_id=actor.user_id,
    ))
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await raise_invoice_write_error(db, job_id, "convert quote", exc)

    logger.info("Converted quote %s to invoice %s", quote_number, invoice_number)
    return await crud.get_invoice(db, invoice.id)


async def send_quote_reminder(db: AsyncSession, actor: AuthContext | None, quote_id: str) -> Quote:
    """Email the customer a reminder for a quote still awaiting a response.

    Unlike the initial quote email this send is synchronous: a delivery
    failure is reported to the caller and the reminder counter is untouched.
    """
    require_capability(actor, Capability.SEND_QUOTE)
    quote = await _load_quote(db, quote_id)
    ensure_job_access(actor, quote.job)

    if quote.status != QuoteStatus.SENT.value:
        raise InvalidQuoteState("Reminders can only be sent for quotes with status 'SENT'")
    if as_utc(quote.valid_until) < utcnow():
        raise Expired("Cannot send reminder for expired quote")

    shop = await crud.get_shop_settings(db)
    max_reminders = shop.quote_max_reminders if shop else get_settings().billing.quote_max_reminders
    if quote.reminder_count >= max_reminders:
        raise ValidationFailed(f"Maximum of {max_reminders} reminders already sent")
    if not quote.customer or not quote.customer.email:
        raise ValidationFailed("Customer has no email address")

    app_url = get_settings().app_url
    html, text = render_email(
        "quote_reminder",
        company_name=shop.company_name if shop else "E-Repair Shop",
        customer_name=quote.customer.full_name,
        job_number=quote.job.job_number,
        appliance_type=quote.job.appliance_type,
        quote=quote,
        accept_url=f"{app_url}/quote/accept/{quote.id}",
        reject_url=f"{app_url}/quote/reject/{quote.id}",
    )
    quote_number = quote.quote_number
    try:
        await send_email(
            db,
            to=quote.customer.email,
            subject=f"Reminder: Quote {quote_number} - Awaiting Your Response",
            html=html,
            text=text,
            email_type=EmailType.QUOTE_REMINDER.value,
            related_id=quote.id,
            sent_by_id=actor.user_id,
        )
    except Exception as exc:
        raise DeliveryFailed("Failed to send reminder email") from exc

    quote = await _load_quote(db, quote_id)
    quote.reminder_count += 1
    quote.last_reminder_sent = utcnow()
    await _commit(db, "record quote reminder")

    logger.info("Sent reminder %d for quote %s", quote.reminder_count, quote_number)
    return await crud.get_quote(db, quote_id)
