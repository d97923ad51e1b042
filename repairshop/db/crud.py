"""CRUD operations for the repair shop models."""

from __future__ import annotations

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.models import (
    ShopSettings, User, Customer, Job, StatusHistory,
    Quote, Invoice, EmailLog, Communication,
)
from repairshop.models.enums import Role


# ── ShopSettings ─────────────────────────────────────────

async def get_shop_settings(db: AsyncSession) -> ShopSettings | None:
    """Get the single settings row."""
    result = await db.execute(select(ShopSettings))
    return result.scalars().first()


async def get_or_create_shop_settings(db: AsyncSession) -> ShopSettings:
    settings = await get_shop_settings(db)
    if settings:
        return settings
    settings = ShopSettings()
    db.add(settings)
    await db.commit()
    await db.refresh(settings)
    return settings


async def update_shop_settings(db: AsyncSession, settings: ShopSettings, **kwargs) -> ShopSettings:
    for k, v in kwargs.items():
        if v is not None:
            setattr(settings, k, v)
    await db.commit()
    await db.refresh(settings)
    return settings


# ── User ─────────────────────────────────────────────────

async def create_user(
    db: AsyncSession, email: str, password_hash: str, role: str,
    first_name: str = "", last_name: str = "", phone: str = "",
) -> User:
    user = User(
        email=email.strip().lower(), password_hash=password_hash, role=role,
        first_name=first_name, last_name=last_name, phone=phone,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalars().first()


async def list_technicians(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.role == Role.TECHNICIAN.value, User.is_active == True)
        .order_by(User.first_name, User.last_name)
    )
    return list(result.scalars().all())


# ── Customer ─────────────────────────────────────────────

async def create_customer(db: AsyncSession, **fields) -> Customer:
    customer = Customer(**fields)
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    return customer


async def get_customer(db: AsyncSession, customer_id: str) -> Customer | None:
    return await db.get(Customer, customer_id)


async def get_customer_by_phone(db: AsyncSession, phone: str) -> Customer | None:
    result = await db.execute(
        select(Customer).where(Customer.phone == phone.strip()).order_by(Customer.created_at)
    )
    return result.scalars().first()


async def get_customer_by_email(db: AsyncSession, email: str) -> Customer | None:
    email = email.strip()
    if not email:
        return None
    result = await db.execute(
        select(Customer).where(func.lower(Customer.email) == email.lower()).order_by(Customer.created_at)
    )
    return result.scalars().first()


async def list_customers(
    db: AsyncSession, search: str = "", limit: int = 50, offset: int = 0,
) -> list[Customer]:
    stmt = select(Customer)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    result = await db.execute(stmt.order_by(Customer.created_at.desc()).limit(limit).offset(offset))
    return list(result.scalars().all())


async def update_customer(db: AsyncSession, customer: Customer, **kwargs) -> Customer:
    for k, v in kwargs.items():
        if v is not None:
            setattr(customer, k, v)
    await db.commit()
    await db.refresh(customer)
    return customer


# ── Job ──────────────────────────────────────────────────

async def get_job(db: AsyncSession, job_id: str) -> Job | None:
    """Load a job with customer, technician, creator and history freshly populated."""
    result = await db.execute(
        select(Job).where(Job.id == job_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_job_by_number(db: AsyncSession, job_number: str) -> Job | None:
    result = await db.execute(select(Job).where(Job.job_number == job_number))
    return result.scalars().first()


async def list_jobs(
    db: AsyncSession,
    status: str | None = None,
    technician_id: str | None = None,
    customer_id: str | None = None,
    search: str = "",
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Job], int]:
    """Return one page of jobs (newest first) and the total match count."""
    filters = []
    if status:
        filters.append(Job.status == status)
    if technician_id:
        filters.append(Job.assigned_technician_id == technician_id)
    if customer_id:
        filters.append(Job.customer_id == customer_id)
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(or_(
            Job.job_number.ilike(pattern),
            Job.appliance_type.ilike(pattern),
            Job.appliance_brand.ilike(pattern),
            Job.issue_description.ilike(pattern),
        ))

    total = (await db.execute(select(func.count(Job.id)).where(*filters))).scalar_one()
    result = await db.execute(
        select(Job)
        .where(*filters)
        .order_by(Job.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return list(result.scalars().all()), total


async def update_job(db: AsyncSession, job: Job, **kwargs) -> Job:
    for k, v in kwargs.items():
        setattr(job, k, v)
    await db.commit()
    return await get_job(db, job.id)


async def delete_job(db: AsyncSession, job: Job) -> None:
    await db.delete(job)
    await db.commit()


async def list_status_history(db: AsyncSession, job_id: str) -> list[StatusHistory]:
    result = await db.execute(
        select(StatusHistory)
        .where(StatusHistory.job_id == job_id)
        .order_by(StatusHistory.created_at, StatusHistory.id)
    )
    return list(result.scalars().all())


# ── Communication ────────────────────────────────────────

async def get_communication(db: AsyncSession, communication_id: str) -> Communication | None:
    return await db.get(Communication, communication_id)


async def list_communications(db: AsyncSession, job_id: str) -> list[Communication]:
    result = await db.execute(
        select(Communication)
        .where(Communication.job_id == job_id)
        .order_by(Communication.created_at.desc(), Communication.id.desc())
    )
    return list(result.scalars().all())


# ── Quote ────────────────────────────────────────────────

async def get_quote(db: AsyncSession, quote_id: str) -> Quote | None:
    result = await db.execute(
        select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def list_quotes(
    db: AsyncSession, status: str | None = None, customer_id: str | None = None,
    job_id: str | None = None,
) -> list[Quote]:
    stmt = select(Quote)
    if job_id:
        stmt = stmt.where(Quote.job_id == job_id)
    if status:
        stmt = stmt.where(Quote.status == status)
    if customer_id:
        stmt = stmt.where(Quote.customer_id == customer_id)
    result = await db.execute(stmt.order_by(Quote.issue_date.desc()))
    return list(result.scalars().all())


# ── Invoice ──────────────────────────────────────────────

async def get_invoice(db: AsyncSession, invoice_id: str) -> Invoice | None:
    result = await db.execute(
        select(Invoice).where(Invoice.id == invoice_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_invoice_for_job(db: AsyncSession, job_id: str) -> Invoice | None:
    result = await db.execute(select(Invoice).where(Invoice.job_id == job_id))
    return result.scalars().first()


async def get_latest_invoice(db: AsyncSession) -> Invoice | None:
    result = await db.execute(select(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(1))
    return result.scalars().first()


async def list_invoices(
    db: AsyncSession, status: str | None = None, customer_id: str | None = None,
    search: str = "", page: int = 1, limit: int = 10,
) -> tuple[list[Invoice], int]:
    filters = []
    if status:
        filters.append(Invoice.status == status)
    if customer_id:
        filters.append(Invoice.customer_id == customer_id)
    if search:
        filters.append(Invoice.invoice_number.ilike(f"%{search.strip()}%"))

    total = (await db.execute(select(func.count(Invoice.id)).where(*filters))).scalar_one()
    result = await db.execute(
        select(Invoice)
        .where(*filters)
        .order_by(Invoice.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return list(result.scalars().all()), total


# ── EmailLog ─────────────────────────────────────────────

async def create_email_log(db: AsyncSession, **fields) -> EmailLog:
    log = EmailLog(**fields)
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


async def list_email_logs(db: AsyncSession, related_id: str | None = None) -> list[EmailLog]:
    stmt = select(EmailLog)
    if related_id:
        stmt = stmt.where(EmailLog.related_id == related_id)
    result = await db.execute(stmt.order_by(EmailLog.created_at.desc()))
    return list(result.scalars().all())
