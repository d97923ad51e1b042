"""Sequential document numbers (INV-00042, JOB-00007) backed by counter rows.

Each sequence is a NumberSequence row bumped with a single
``UPDATE ... SET value = value + 1`` inside the caller's transaction, so two
concurrent conversions serialize on the row instead of both reading the
same "last invoice". The row is seeded lazily from the newest existing
document the first time a sequence is used.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from repairshop.config import get_settings
from repairshop.models import Invoice, Job, NumberSequence

logger = logging.getLogger(__name__)

INVOICE_SEQUENCE = "invoice"
JOB_SEQUENCE = "job"
DEFAULT_INVOICE_PREFIX = "INV-"
DEFAULT_JOB_PREFIX = "JOB-"

_LEADING_DIGITS = re.compile(r"^\d+")


def parse_number(number: str, prefix: str) -> int | None:
    """Numeric part of *number* after *prefix*, or None when unparsable."""
    rest = number[len(prefix):] if number.startswith(prefix) else number
    match = _LEADING_DIGITS.match(rest)
    return int(match.group()) if match else None


def format_number(prefix: str, value: int, padding: int | None = None) -> str:
    padding = padding if padding is not None else get_settings().billing.number_padding
    return f"{prefix}{value:0{padding}d}"


async def _last_invoice_value(db: AsyncSession, prefix: str) -> int:
    result = await db.execute(
        select(Invoice.invoice_number).order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(1)
    )
    last = result.scalars().first()
    return (parse_number(last, prefix) or 0) if last else 0


async def _last_job_value(db: AsyncSession, prefix: str) -> int:
    result = await db.execute(
        select(Job.job_number).order_by(Job.created_at.desc(), Job.id.desc()).limit(1)
    )
    last = result.scalars().first()
    return (parse_number(last, prefix) or 0) if last else 0


_SEEDERS = {
    INVOICE_SEQUENCE: _last_invoice_value,
    JOB_SEQUENCE: _last_job_value,
}


async def next_value(db: AsyncSession, name: str, prefix: str) -> int:
    """Increment sequence *name* and return the new value. Does not commit."""
    result = await db.execute(
        update(NumberSequence)
        .where(NumberSequence.name == name)
        .values(value=NumberSequence.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        seed = await _SEEDERS[name](db, prefix)
        logger.info("Seeding %s sequence at %d", name, seed)
        db.add(NumberSequence(name=name, value=seed + 1))
        await db.flush()

    value = await db.execute(
        select(NumberSequence.value)
        .where(NumberSequence.name == name)
    )
    return value.scalar_one()


async def next_invoice_number(db: AsyncSession, prefix: str | None = None) -> str:
    prefix = prefix or DEFAULT_INVOICE_PREFIX
    return format_number(prefix, await next_value(db, INVOICE_SEQUENCE, prefix))


async def next_job_number(db: AsyncSession, prefix: str | None = None) -> str:
    prefix = prefix or DEFAULT_JOB_PREFIX
    return format_number(prefix, await next_value(db, JOB_SEQUENCE, prefix))
