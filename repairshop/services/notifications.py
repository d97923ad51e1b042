"""Post-commit notification hooks.

Workflows commit their primary writes first and then hand an event to each
hook. A hook that raises is logged and skipped; it never fails the request,
and only its own uncommitted writes are rolled back. Passing ``hooks=()``
to a workflow runs it with no mail dependency at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Iterable
from urllib.parse import quote_plus

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.db import crud
from repairshop.models.enums import (
    CommunicationChannel,
    CommunicationDirection,
    EmailType,
    JobStatus,
)
from repairshop.services.email import send_email

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html.j2",)),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["status_label"] = lambda status: str(status).replace("_", " ")
_env.filters["money"] = lambda amount: f"${amount:,.2f}"

STATUS_COLORS = {
    JobStatus.OPEN.value: "#3b82f6",
    JobStatus.IN_PROGRESS.value: "#3b82f6",
    JobStatus.AWAITING_PARTS.value: "#f59e0b",
    JobStatus.AWAITING_CUSTOMER_APPROVAL.value: "#f59e0b",
    JobStatus.READY_FOR_PICKUP.value: "#10b981",
    JobStatus.CLOSED.value: "#6b7280",
    JobStatus.CANCELLED.value: "#ef4444",
    JobStatus.CUSTOMER_CANCELLED.value: "#ef4444",
}


@dataclass(frozen=True)
class JobStatusChanged:
    job_id: str
    job_number: str
    old_status: str
    new_status: str
    note: str
    actor_id: str | None


@dataclass(frozen=True)
class QuoteSent:
    quote_id: str
    job_id: str
    actor_id: str | None


@dataclass(frozen=True)
class JobSubmitted:
    job_id: str
    job_number: str
    actor_id: str | None


@dataclass(frozen=True)
class CommunicationLogged:
    communication_id: str
    job_id: str
    direction: str
    channel: str
    actor_id: str | None


Hook = Callable[[AsyncSession, object], Awaitable[None]]


def render_email(name: str, **context) -> tuple[str, str]:
    """Render the html and plain-text variants of template *name*."""
    html = _env.get_template(f"{name}.html.j2").render(**context)
    text = _env.get_template(f"{name}.txt.j2").render(**context)
    return html, text


def tracking_url(job_number: str) -> str:
    return f"{get_settings().app_url}/track-job?jobNumber={quote_plus(job_number)}"


async def run_post_commit_hooks(db: AsyncSession, hooks: Iterable[Hook], event) -> None:
    for hook in hooks:
        try:
            await hook(db, event)
        except Exception:
            logger.exception(
                "Post-commit hook %s failed for %s", getattr(hook, "__name__", hook), event
            )
            # A failed flush leaves the session unusable for the caller's refetch.
            await db.rollback()


# ── Hooks ────────────────────────────────────────────────

async def notify_job_status_changed(db: AsyncSession, event: JobStatusChanged) -> None:
    job = await crud.get_job(db, event.job_id)
    if not job or not job.customer or not job.customer.email:
        logger.info("Job %s has no customer email; skipping status notification", event.job_number)
        return

    shop = await crud.get_shop_settings(db)
    context = {
        "company_name": shop.company_name if shop else "E-Repair Shop",
        "customer_name": job.customer.full_name,
        "job_number": job.job_number,
        "appliance_type": job.appliance_type,
        "tracking_url": tracking_url(job.job_number),
    }

    if event.new_status == JobStatus.READY_FOR_PICKUP.value:
        context.update(
            shop_address=shop.company_address if shop else "",
            shop_phone=shop.company_phone if shop else "",
            shop_hours=shop.business_hours if shop else "",
        )
        subject = f"Ready for Pickup - {job.job_number}"
        html, text = render_email("ready_for_pickup", **context)
    else:
        context.update(
            old_status=event.old_status,
            new_status=event.new_status,
            status_color=STATUS_COLORS.get(event.new_status, "#3b82f6"),
            notes=event.note,
        )
        subject = f"Status Update: {event.new_status.replace('_', ' ')} - {job.job_number}"
        html, text = render_email("status_update", **context)

    await send_email(
        db,
        to=job.customer.email,
        subject=subject,
        html=html,
        text=text,
        email_type=EmailType.STATUS_UPDATE.value,
        related_id=job.id,
        sent_by_id=event.actor_id,
    )


async def notify_quote_sent(db: AsyncSession, event: QuoteSent) -> None:
    quote = await crud.get_quote(db, event.quote_id)
    if not quote or not quote.customer or not quote.customer.email:
        logger.info("Quote %s has no customer email; skipping quote notification", event.quote_id)
        return

    shop = await crud.get_shop_settings(db)
    app_url = get_settings().app_url
    html, text = render_email(
        "quote_sent",
        company_name=shop.company_name if shop else "E-Repair Shop",
        customer_name=quote.customer.full_name,
        job_number=quote.job.job_number,
        appliance_type=quote.job.appliance_type,
        quote=quote,
        accept_url=f"{app_url}/quote/accept/{quote.id}",
        reject_url=f"{app_url}/quote/reject/{quote.id}",
    )
    await send_email(
        db,
        to=quote.customer.email,
        subject=f"Your repair quote {quote.quote_number}",
        html=html,
        text=text,
        email_type=EmailType.QUOTE_SENT.value,
        related_id=quote.job_id,
        sent_by_id=event.actor_id,
    )


async def notify_job_submitted(db: AsyncSession, event: JobSubmitted) -> None:
    job = await crud.get_job(db, event.job_id)
    if not job or not job.customer or not job.customer.email:
        logger.info("Job %s has no customer email; skipping confirmation", event.job_number)
        return

    shop = await crud.get_shop_settings(db)
    html, text = render_email(
        "job_confirmation",
        company_name=shop.company_name if shop else "E-Repair Shop",
        customer_name=job.customer.full_name,
        job_number=job.job_number,
        appliance_type=job.appliance_type,
        appliance_brand=job.appliance_brand,
        issue_description=job.issue_description,
        tracking_url=tracking_url(job.job_number),
    )
    await send_email(
        db,
        to=job.customer.email,
        subject=f"Job Confirmation - {job.job_number}",
        html=html,
        text=text,
        email_type=EmailType.JOB_CONFIRMATION.value,
        related_id=job.id,
        sent_by_id=event.actor_id,
    )


async def send_logged_communication(db: AsyncSession, event: CommunicationLogged) -> None:
    """Deliver an outbound EMAIL entry to the customer; other entries are log-only."""
    if (event.direction, event.channel) != (
        CommunicationDirection.OUTBOUND.value, CommunicationChannel.EMAIL.value
    ):
        return

    job = await crud.get_job(db, event.job_id)
    if not job or not job.customer or not job.customer.email:
        logger.info("Job %s has no customer email; communication not sent", event.job_id)
        return
    entry = await crud.get_communication(db, event.communication_id)
    if entry is None:
        return

    shop = await crud.get_shop_settings(db)
    subject = entry.subject or f"Update on your repair {job.job_number}"
    html, text = render_email(
        "communication",
        company_name=shop.company_name if shop else "E-Repair Shop",
        customer_name=job.customer.full_name,
        job_number=job.job_number,
        subject=subject,
        message=entry.message,
        tracking_url=tracking_url(job.job_number),
    )
    await send_email(
        db,
        to=job.customer.email,
        subject=subject,
        html=html,
        text=text,
        email_type=EmailType.COMMUNICATION.value,
        related_id=job.id,
        sent_by_id=event.actor_id,
    )


DEFAULT_STATUS_HOOKS: tuple[Hook, ...] = (notify_job_status_changed,)
DEFAULT_QUOTE_HOOKS: tuple[Hook, ...] = (notify_quote_sent,)
DEFAULT_INTAKE_HOOKS: tuple[Hook, ...] = (notify_job_submitted,)
DEFAULT_COMMUNICATION_HOOKS: tuple[Hook, ...] = (send_logged_communication,)
