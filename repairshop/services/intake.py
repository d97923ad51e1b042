"""Customer self-service intake: jobs submitted from the public portal.

Portal submissions have no signed-in actor, so they are attributed to an
inactive system account that cannot log in. The customer is matched by
phone first, then by email, and updated with the submitted details when
found. The job, its first history row and an inbound communication entry
land in one commit; the confirmation email is a post-commit hook.
"""

from __future__ import annotations

import logging
import secrets
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.errors import Internal, ValidationFailed
from repairshop.models import Communication, Customer, Job, StatusHistory, User
from repairshop.models.enums import (
    CommunicationChannel,
    CommunicationDirection,
    ContactMethod,
    JobStatus,
    Priority,
    Role,
)
from repairshop.services.auth import hash_password
from repairshop.services.notifications import (
    DEFAULT_INTAKE_HOOKS,
    Hook,
    JobSubmitted,
    run_post_commit_hooks,
)
from repairshop.services.numbering import next_job_number

logger = logging.getLogger(__name__)

SYSTEM_USER_EMAIL = "system@erepair.local"
MIN_PHONE_SEARCH = 3


async def _system_user(db: AsyncSession) -> User:
    user = await crud.get_user_by_email(db, SYSTEM_USER_EMAIL)
    if user:
        return user
    user = User(
        email=SYSTEM_USER_EMAIL,
        password_hash=hash_password(secrets.token_urlsafe(32)),
        first_name="System",
        last_name="Portal",
        role=Role.ADMIN.value,
        is_active=False,
    )
    db.add(user)
    await db.flush()
    logger.info("Created portal system user %s", SYSTEM_USER_EMAIL)
    return user


async def _match_customer(db: AsyncSession, phone: str, email: str) -> Customer | None:
    return await crud.get_customer_by_phone(db, phone) or await crud.get_customer_by_email(db, email)


async def submit_job(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: str,
    appliance_type: str,
    appliance_brand: str,
    issue_description: str,
    model_number: str = "",
    serial_number: str = "",
    preferred_contact_method: ContactMethod | str = ContactMethod.EMAIL,
    hooks: Iterable[Hook] = DEFAULT_INTAKE_HOOKS,
) -> Job:
    """Open an OPEN/MEDIUM job on behalf of a walk-up or QR-code customer."""
    contact = ContactMethod(preferred_contact_method).value
    email = email.strip().lower()
    phone = phone.strip()

    system_user = await _system_user(db)
    customer = await _match_customer(db, phone, email)
    if customer:
        customer.first_name = first_name
        customer.last_name = last_name
        customer.email = email
        customer.phone = phone
    else:
        customer = Customer(first_name=first_name, last_name=last_name, email=email, phone=phone)
        db.add(customer)
    await db.flush()

    shop = await crud.get_shop_settings(db)
    job_number = await next_job_number(db, shop.job_number_prefix if shop else None)
    job = Job(
        job_number=job_number,
        customer_id=customer.id,
        status=JobStatus.OPEN.value,
        priority=Priority.MEDIUM.value,
        appliance_type=appliance_type,
        appliance_brand=appliance_brand,
        model_number=model_number,
        serial_number=serial_number,
        issue_description=issue_description,
        customer_notes=f"Preferred contact: {contact}",
        created_by_id=system_user.id,
    )
    db.add(job)
    await db.flush()

    db.add(StatusHistory(
        job_id=job.id,
        status=JobStatus.OPEN.value,
        notes="Job submitted via customer portal",
        changed_by_id=system_user.id,
    ))
    db.add(Communication(
        job_id=job.id,
        direction=CommunicationDirection.INBOUND.value,
        channel=CommunicationChannel.IN_PERSON.value,
        subject="Job Submitted",
        message=f"Customer submitted job via QR code portal. Preferred contact: {contact}",
        created_by_id=system_user.id,
    ))

    job_id, system_user_id = job.id, system_user.id
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error while submitting portal job")
        raise Internal("Failed to submit job. Please try again or contact us directly.") from exc

    logger.info("Portal job %s submitted for customer %s", job_number, customer.id)
    await run_post_commit_hooks(
        db, hooks, JobSubmitted(job_id=job_id, job_number=job_number, actor_id=system_user_id)
    )
    return await crud.get_job(db, job_id)


def _mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if not domain:
        return ""
    return f"{local[:1]}***@{domain}"


async def search_customer(db: AsyncSession, phone: str) -> dict:
    """Portal lookup by exact phone number. Returns names and a masked email only."""
    phone = (phone or "").strip()
    if len(phone) < MIN_PHONE_SEARCH:
        raise ValidationFailed("Phone number must be at least 3 characters")

    customer = await crud.get_customer_by_phone(db, phone)
    if not customer:
        return {"found": False, "message": "No customer found with this phone number"}
    return {
        "found": True,
        "customer": {
            "first_name": customer.first_name,
            "last_name": customer.last_name,
            "email": _mask_email(customer.email),
            "phone": customer.phone,
        },
    }
