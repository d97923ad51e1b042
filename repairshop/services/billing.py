"""Money math, direct invoices, payments and invoice email."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.db import crud
from repairshop.errors import (
    ConflictDuplicateInvoice,
    DeliveryFailed,
    Internal,
    NotFound,
    PaymentRejected,
    ValidationFailed,
)
from repairshop.models import Invoice, InvoiceItem, Payment
from repairshop.models.base import utcnow
from repairshop.models.enums import EmailType, InvoiceStatus, ItemType, PaymentMethod
from repairshop.services.auth import AuthContext
from repairshop.services.email import send_email
from repairshop.services.notifications import render_email
from repairshop.services.numbering import next_invoice_number
from repairshop.services.permissions import Capability, require_capability

logger = logging.getLogger(__name__)


@dataclass
class Totals:
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount_amount: float
    total_amount: float


def _money(value: float) -> float:
    return round(value, 2)


def line_total(quantity: float, unit_price: float) -> float:
    return _money(quantity * unit_price)


def compute_totals(items, tax_rate: float = 0.0, discount_amount: float = 0.0) -> Totals:
    """Totals for *items* (objects or dicts with quantity and unit_price).

    ``tax_rate`` is a percentage applied to the subtotal; the discount is
    subtracted after tax.
    """
    subtotal = 0.0
    for item in items:
        if isinstance(item, dict):
            subtotal += line_total(item["quantity"], item["unit_price"])
        else:
            subtotal += line_total(item.quantity, item.unit_price)
    subtotal = _money(subtotal)
    tax_amount = _money(subtotal * tax_rate / 100)
    return Totals(
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discount_amount=_money(discount_amount),
        total_amount=_money(subtotal + tax_amount - discount_amount),
    )


def default_due_date(start: datetime | None = None) -> datetime:
    return (start or utcnow()) + timedelta(days=get_settings().billing.invoice_due_days)


async def raise_invoice_write_error(
    db: AsyncSession, job_id: str, action: str, exc: SQLAlchemyError
) -> None:
    """Roll back a failed invoice write and raise the matching workflow error.

    Only a second invoice for the same job is a conflict; anything else is
    logged and surfaced as Internal.
    """
    await db.rollback()
    if await crud.get_invoice_for_job(db, job_id):
        raise ConflictDuplicateInvoice() from exc
    logger.error("Database error while trying to %s for job %s", action, job_id, exc_info=exc)
    raise Internal(f"Failed to {action}") from exc


async def create_invoice(
    db: AsyncSession,
    actor: AuthContext | None,
    *,
    job_id: str,
    items: list[dict],
    tax_rate: float | None = None,
    discount_amount: float = 0.0,
    due_date: datetime | None = None,
    notes: str = "",
    payment_terms: str | None = None,
) -> Invoice:
    """Issue an invoice for a job directly, without going through a quote."""
    require_capability(actor, Capability.MANAGE_INVOICES)
    if not items:
        raise ValidationFailed("At least one item is required")

    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    if await crud.get_invoice_for_job(db, job.id):
        raise ConflictDuplicateInvoice()

    shop = await crud.get_shop_settings(db)
    if tax_rate is None:
        tax_rate = shop.tax_rate if shop else 0.0
    totals = compute_totals(items, tax_rate, discount_amount)

    invoice = Invoice(
        invoice_number=await next_invoice_number(db, shop.invoice_number_prefix if shop else None),
        job_id=job.id,
        customer_id=job.customer_id,
        issued_by_id=actor.user_id,
        status=InvoiceStatus.DRAFT.value,
        issue_date=utcnow(),
        due_date=due_date or default_due_date(),
        subtotal=totals.subtotal,
        tax_rate=totals.tax_rate,
        tax_amount=totals.tax_amount,
        discount_amount=totals.discount_amount,
        total_amount=totals.total_amount,
        paid_amount=0.0,
        balance_amount=totals.total_amount,
        notes=notes,
        payment_terms=payment_terms or get_settings().billing.payment_terms,
        items=[
            InvoiceItem(
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
    invoice_number, job_number = invoice.invoice_number, job.job_number
    db.add(invoice)
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await raise_invoice_write_error(db, job_id, "create invoice", exc)

    logger.info("Created invoice %s for job %s", invoice_number, job_number)
    return await crud.get_invoice(db, invoice.id)


async def record_payment(
    db: AsyncSession,
    actor: AuthContext | None,
    invoice_id: str,
    *,
    amount: float,
    payment_method: PaymentMethod | str = PaymentMethod.CASH,
    payment_date: datetime | None = None,
    reference_number: str = "",
    notes: str = "",
) -> Invoice:
    """Apply a payment to an invoice and move it to PAID or PARTIALLY_PAID."""
    require_capability(actor, Capability.RECORD_PAYMENT)

    invoice = await crud.get_invoice(db, invoice_id)
    if not invoice:
        raise NotFound("Invoice not found")
    if invoice.status == InvoiceStatus.CANCELLED.value:
        raise PaymentRejected("Cannot add payment to cancelled invoice")
    if amount <= 0:
        raise PaymentRejected("Amount must be greater than 0")
    if _money(amount) > _money(invoice.balance_amount):
        raise PaymentRejected(
            f"Payment amount cannot exceed balance of ${invoice.balance_amount:.2f}"
        )

    db.add(Payment(
        invoice_id=invoice.id,
        amount=_money(amount),
        payment_method=PaymentMethod(payment_method).value,
        payment_date=payment_date or utcnow(),
        reference_number=reference_number,
        notes=notes,
    ))
    invoice.paid_amount = _money(invoice.paid_amount + amount)
    invoice.balance_amount = _money(invoice.total_amount - invoice.paid_amount)
    if invoice.balance_amount <= 0:
        invoice.balance_amount = 0.0
        invoice.status = InvoiceStatus.PAID.value
    else:
        invoice.status = InvoiceStatus.PARTIALLY_PAID.value

    invoice_number = invoice.invoice_number
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error while recording payment on %s", invoice_number)
        raise Internal("Failed to record payment") from exc

    logger.info(
        "Recorded payment of %.2f on invoice %s (balance %.2f)",
        amount, invoice.invoice_number, invoice.balance_amount,
    )
    return await crud.get_invoice(db, invoice.id)


async def email_invoice(db: AsyncSession, actor: AuthContext | None, invoice_id: str) -> Invoice:
    """Email an invoice to its customer. A DRAFT invoice becomes SENT once delivered."""
    require_capability(actor, Capability.MANAGE_INVOICES)
    invoice = await crud.get_invoice(db, invoice_id)
    if not invoice:
        raise NotFound("Invoice not found")
    if not invoice.customer or not invoice.customer.email:
        raise ValidationFailed("Customer has no email address")

    job = await crud.get_job(db, invoice.job_id)
    shop = await crud.get_shop_settings(db)
    company_name = shop.company_name if shop else "E-Repair Shop"
    html, text = render_email(
        "invoice",
        company_name=company_name,
        customer_name=invoice.customer.full_name,
        job_number=job.job_number if job else "",
        invoice=invoice,
        terms=shop.terms_and_conditions if shop else "",
    )
    invoice_number = invoice.invoice_number
    try:
        await send_email(
            db,
            to=invoice.customer.email,
            subject=f"Invoice {invoice_number} from {company_name}",
            html=html,
            text=text,
            email_type=EmailType.INVOICE.value,
            related_id=invoice_id,
            sent_by_id=actor.user_id,
        )
    except Exception as exc:
        raise DeliveryFailed("Failed to send invoice email") from exc

    invoice = await crud.get_invoice(db, invoice_id)
    if invoice.status == InvoiceStatus.DRAFT.value:
        invoice.status = InvoiceStatus.SENT.value
        try:
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.exception("Database error while marking invoice %s sent", invoice_number)
            raise Internal("Failed to update invoice status") from exc

    logger.info("Emailed invoice %s to %s", invoice_number, invoice.customer.email)
    return await crud.get_invoice(db, invoice_id)
