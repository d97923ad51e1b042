"""Job ticket workflow: creation, edits, deletion and status transitions.

Any status may move to any other status; the only transition guard is that
the requested value differs from the current one. Every transition appends
exactly one StatusHistory row in the same commit as the status write.
Customer notification runs afterwards as a post-commit hook and can never
undo or fail the transition.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.errors import Internal, JobHasInvoice, NotFound, NoOpSameStatus, ValidationFailed
from repairshop.models import Communication, Job, StatusHistory
from repairshop.models.base import utcnow
from repairshop.models.enums import (
    CLOSED_STATUSES,
    CommunicationChannel,
    CommunicationDirection,
    JobStatus,
)
from repairshop.services.auth import AuthContext
from repairshop.services.notifications import (
    DEFAULT_COMMUNICATION_HOOKS,
    DEFAULT_STATUS_HOOKS,
    CommunicationLogged,
    Hook,
    JobStatusChanged,
    run_post_commit_hooks,
)
from repairshop.services.numbering import next_job_number
from repairshop.services.permissions import Capability, ensure_job_access, require_capability

logger = logging.getLogger(__name__)

# Fields a PATCH-style job update may touch. Status goes through change_job_status.
EDITABLE_FIELDS = (
    "priority",
    "appliance_type",
    "appliance_brand",
    "model_number",
    "serial_number",
    "issue_description",
    "diagnostic_results",
    "technician_notes",
    "labor_hours",
    "assigned_technician_id",
    "estimated_completion",
)
# Nullable columns; a null for any other editable field means "leave unchanged".
CLEARABLE_FIELDS = ("assigned_technician_id", "estimated_completion")


async def _commit(db: AsyncSession, action: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Database error while %s", action)
        raise Internal(f"Failed to {action}") from exc


async def _load_job(db: AsyncSession, job_id: str) -> Job:
    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    return job


async def change_job_status(
    db: AsyncSession,
    actor: AuthContext | None,
    job_id: str,
    status: JobStatus | str,
    note: str | None = None,
    hooks: Iterable[Hook] = DEFAULT_STATUS_HOOKS,
) -> Job:
    """Move a job to *status*, record the history row, then notify.

    Guards run in order: authentication, role capability, job existence,
    technician assignment, same-status no-op. Nothing is written when a
    guard fails.
    """
    require_capability(actor, Capability.UPDATE_JOB_STATUS)
    status = JobStatus(status)

    job = await _load_job(db, job_id)
    ensure_job_access(actor, job)

    old_status = job.status
    if old_status == status.value:
        raise NoOpSameStatus()

    now = utcnow()
    job.status = status.value
    job.actual_completion = now if status in CLOSED_STATUSES else None
    job.last_notification_sent = now

    history_note = note or f"Status changed to {status.value}"
    db.add(StatusHistory(
        job_id=job.id,
        status=status.value,
        notes=history_note,
        changed_by_id=actor.user_id,
    ))
    await _commit(db, "update job status")

    logger.info(
        "Job %s status %s -> %s by %s", job.job_number, old_status, status.value, actor.user_id
    )

    await run_post_commit_hooks(
        db,
        hooks,
        JobStatusChanged(
            job_id=job.id,
            job_number=job.job_number,
            old_status=old_status,
            new_status=status.value,
            note=note or "",
            actor_id=actor.user_id,
        ),
    )
    return await crud.get_job(db, job_id)


async def create_job(db: AsyncSession, actor: AuthContext | None, **fields) -> Job:
    """Open a new job ticket numbered from the job sequence."""
    require_capability(actor, Capability.MANAGE_JOBS)

    customer = await crud.get_customer(db, fields.get("customer_id", ""))
    if not customer:
        raise NotFound("Customer not found")

    technician_id = fields.get("assigned_technician_id")
    if technician_id and not await crud.get_user(db, technician_id):
        raise ValidationFailed("Assigned technician does not exist")

    shop = await crud.get_shop_settings(db)
    job_number = await next_job_number(db, shop.job_number_prefix if shop else None)

    job = Job(
        job_number=job_number,
        status=JobStatus.OPEN.value,
        created_by_id=actor.user_id,
        **fields,
    )
    db.add(job)
    await db.flush()
    db.add(StatusHistory(
        job_id=job.id,
        status=JobStatus.OPEN.value,
        notes="Job created",
        changed_by_id=actor.user_id,
    ))
    await _commit(db, "create job")

    logger.info("Created job %s for customer %s", job_number, customer.id)
    return await crud.get_job(db, job.id)


async def update_job(db: AsyncSession, actor: AuthContext | None, job_id: str, **fields) -> Job:
    """Apply a partial update. Unknown or status fields are ignored."""
    require_capability(actor, Capability.MANAGE_JOBS)
    job = await _load_job(db, job_id)
    ensure_job_access(actor, job)

    updates = {
        k: v for k, v in fields.items()
        if k in EDITABLE_FIELDS and (v is not None or k in CLEARABLE_FIELDS)
    }
    technician_id = updates.get("assigned_technician_id")
    if technician_id and not await crud.get_user(db, technician_id):
        raise ValidationFailed("Assigned technician does not exist")

    if not updates:
        return job
    return await crud.update_job(db, job, **updates)


async def delete_job(db: AsyncSession, actor: AuthContext | None, job_id: str) -> None:
    """Remove a job, its history and its quotes. Invoiced jobs are kept."""
    require_capability(actor, Capability.DELETE_JOB)
    job = await _load_job(db, job_id)

    if await crud.get_invoice_for_job(db, job.id):
        raise JobHasInvoice()

    for quote in await crud.list_quotes(db, job_id=job.id):
        await db.delete(quote)
    await db.delete(job)
    await _commit(db, "delete job")
    logger.info("Deleted job %s", job.job_number)


async def add_communication(
    db: AsyncSession,
    actor: AuthContext | None,
    job_id: str,
    *,
    direction: CommunicationDirection | str,
    channel: CommunicationChannel | str,
    message: str,
    subject: str = "",
    hooks: Iterable[Hook] = DEFAULT_COMMUNICATION_HOOKS,
) -> Communication:
    """Record a customer contact on a job. Outbound EMAIL entries are also mailed."""
    require_capability(actor, Capability.MANAGE_JOBS)
    direction = CommunicationDirection(direction)
    channel = CommunicationChannel(channel)
    if not message.strip():
        raise ValidationFailed("Message is required")

    job = await _load_job(db, job_id)
    ensure_job_access(actor, job)

    entry = Communication(
        job_id=job.id,
        direction=direction.value,
        channel=channel.value,
        subject=subject or "",
        message=message,
        created_by_id=actor.user_id,
    )
    db.add(entry)
    await _commit(db, "log communication")
    entry_id = entry.id

    logger.info("Logged %s %s communication on job %s", direction.value, channel.value, job.job_number)
    await run_post_commit_hooks(
        db,
        hooks,
        CommunicationLogged(
            communication_id=entry_id,
            job_id=job.id,
            direction=direction.value,
            channel=channel.value,
            actor_id=actor.user_id,
        ),
    )
    return await crud.get_communication(db, entry_id)
