"""Public portal API: job tracking and its QR code, self-service job
submission, phone lookup and shop contact details.

No authentication: the job number is the customer's lookup key.
"""

from __future__ import annotations

import io

import qrcode
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.db import crud
from repairshop.dependencies import get_db
from repairshop.errors import NotFound, ValidationFailed
from repairshop.schemas import JobSubmission, PublicSettings, SubmissionResult, TrackedJob
from repairshop.services import intake
from repairshop.services.notifications import tracking_url

router = APIRouter(prefix="/api/public", tags=["public"])


@router.get("/track-job", response_model=TrackedJob)
async def track_job(
    job_number: str = Query("", alias="jobNumber"),
    db: AsyncSession = Depends(get_db),
):
    job_number = job_number.strip().upper()
    if not job_number:
        raise ValidationFailed("Job number is required")

    job = await crud.get_job_by_number(db, job_number)
    if not job:
        raise NotFound("Job not found")

    history = sorted(job.status_history, key=lambda h: (h.created_at, h.id), reverse=True)
    return {
        "job_number": job.job_number,
        "status": job.status,
        "priority": job.priority,
        "appliance_type": job.appliance_type,
        "appliance_brand": job.appliance_brand,
        "issue_description": job.issue_description,
        "customer_name": job.customer.full_name if job.customer else "",
        "technician_name": job.assigned_technician.full_name if job.assigned_technician else None,
        "estimated_completion": job.estimated_completion,
        "actual_completion": job.actual_completion,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
        "status_history": history,
    }


@router.get("/track-job/qr")
async def track_job_qr(job_number: str = Query("", alias="jobNumber")):
    """PNG QR code pointing at the tracking page (for one job when given)."""
    job_number = job_number.strip().upper()
    url = tracking_url(job_number) if job_number else f"{get_settings().app_url}/track-job"
    img = qrcode.make(url)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return StreamingResponse(buf, media_type="image/png")


@router.get("/settings", response_model=PublicSettings)
async def public_settings(db: AsyncSession = Depends(get_db)):
    shop = await crud.get_shop_settings(db)
    if not shop:
        return PublicSettings(company_name="")
    return shop


@router.post("/submit-job", response_model=SubmissionResult, status_code=201)
async def submit_job(body: JobSubmission, db: AsyncSession = Depends(get_db)):
    job = await intake.submit_job(db, **body.model_dump())
    return SubmissionResult(
        job_number=job.job_number,
        job_id=job.id,
        message="Job submitted successfully! You will receive a confirmation email shortly.",
    )


@router.get("/search-customer")
async def search_customer(phone: str = "", db: AsyncSession = Depends(get_db)):
    return await intake.search_customer(db, phone)
