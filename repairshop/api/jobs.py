"""Jobs API: tickets, status transitions, history, quotes and the contact log."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_auth, require_capability_dep
from repairshop.errors import NotFound
from repairshop.models.enums import JobStatus
from repairshop.schemas import (
    CommunicationCreate, CommunicationRead, JobCreate, JobListResponse, JobRead, JobUpdate,
    QuoteRead, SendQuoteRequest, StatusHistoryRead, StatusUpdate,
)
from repairshop.services import job_workflow, quote_workflow
from repairshop.services.auth import AuthContext
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/jobs", tags=["jobs"])

_view = require_capability_dep(Capability.VIEW_JOBS)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: JobStatus | None = None,
    technician_id: str | None = None,
    customer_id: str | None = None,
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    jobs, total = await crud.list_jobs(
        db,
        status=status.value if status else None,
        technician_id=technician_id,
        customer_id=customer_id,
        search=search,
        page=page,
        limit=limit,
    )
    return {"jobs": jobs, "total": total, "page": page, "limit": limit}


@router.post("", response_model=JobRead, status_code=201)
async def create_job(
    body: JobCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    data = body.model_dump()
    data["priority"] = body.priority.value
    return await job_workflow.create_job(db, auth, **data)


@router.get("/{job_id}", response_model=JobRead)
async def get_job(
    job_id: str,
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    return job


@router.put("/{job_id}", response_model=JobRead)
async def update_job(
    job_id: str,
    body: JobUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    updates = body.model_dump(exclude_unset=True)
    if body.priority is not None:
        updates["priority"] = body.priority.value
    return await job_workflow.update_job(db, auth, job_id, **updates)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: str,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await job_workflow.delete_job(db, auth, job_id)
    return Response(status_code=204)


@router.put("/{job_id}/status", response_model=JobRead)
async def update_job_status(
    job_id: str,
    body: StatusUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await job_workflow.change_job_status(db, auth, job_id, body.status, body.notes)


@router.get("/{job_id}/history", response_model=list[StatusHistoryRead])
async def get_job_history(
    job_id: str,
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    return await crud.list_status_history(db, job.id)


@router.post("/{job_id}/send-quote", response_model=QuoteRead, status_code=201)
async def send_quote(
    job_id: str,
    body: SendQuoteRequest,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await quote_workflow.send_quote(
        db,
        auth,
        job_id,
        items=[item.model_dump(mode="json") for item in body.items],
        tax_rate=body.tax_rate,
        discount_amount=body.discount_amount,
        notes=body.notes,
        valid_days=body.valid_days,
    )


@router.get("/{job_id}/communications", response_model=list[CommunicationRead])
async def list_communications(
    job_id: str,
    auth: AuthContext = Depends(_view),
    db: AsyncSession = Depends(get_db),
):
    job = await crud.get_job(db, job_id)
    if not job:
        raise NotFound("Job not found")
    return await crud.list_communications(db, job.id)


@router.post("/{job_id}/communications", response_model=CommunicationRead, status_code=201)
async def add_communication(
    job_id: str,
    body: CommunicationCreate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await job_workflow.add_communication(
        db,
        auth,
        job_id,
        direction=body.direction,
        channel=body.channel,
        subject=body.subject,
        message=body.message,
    )
