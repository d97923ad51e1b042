"""Shop settings API — admin configuration and the test-email check."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.db import crud
from repairshop.dependencies import get_db, require_capability_dep
from repairshop.models import ShopSettings
from repairshop.schemas import EmailTestRequest, ShopSettingsRead, ShopSettingsUpdate
from repairshop.services.auth import AuthContext
from repairshop.services.email import send_test_email
from repairshop.services.permissions import Capability

router = APIRouter(prefix="/api/settings", tags=["settings"])

_admin = require_capability_dep(Capability.MANAGE_SETTINGS)


def _settings_out(settings: ShopSettings) -> ShopSettingsRead:
    return ShopSettingsRead(
        id=settings.id,
        company_name=settings.company_name,
        company_email=settings.company_email,
        company_phone=settings.company_phone,
        company_address=settings.company_address,
        business_hours=settings.business_hours,
        tax_rate=settings.tax_rate,
        currency=settings.currency,
        job_number_prefix=settings.job_number_prefix,
        invoice_number_prefix=settings.invoice_number_prefix,
        quote_max_reminders=settings.quote_max_reminders,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password_set=bool(settings.smtp_password),
        smtp_from_name=settings.smtp_from_name,
        smtp_from_email=settings.smtp_from_email,
        terms_and_conditions=settings.terms_and_conditions,
    )


@router.get("", response_model=ShopSettingsRead)
async def get_shop_settings(
    auth: AuthContext = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    settings = await crud.get_or_create_shop_settings(db)
    return _settings_out(settings)


@router.put("", response_model=ShopSettingsRead)
async def update_shop_settings(
    body: ShopSettingsUpdate,
    auth: AuthContext = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    settings = await crud.get_or_create_shop_settings(db)
    updates = body.model_dump(exclude_none=True)
    if updates:
        settings = await crud.update_shop_settings(db, settings, **updates)
    return _settings_out(settings)


@router.post("/test-email")
async def test_email(
    body: EmailTestRequest,
    auth: AuthContext = Depends(_admin),
    db: AsyncSession = Depends(get_db),
):
    return await send_test_email(db, body.email.strip(), sent_by_id=auth.user_id)
