import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from repairshop.db import crud
from repairshop.db.engine import build_engine, create_all
from repairshop.models import Job, StatusHistory
from repairshop.models.enums import JobStatus, Role


@pytest_asyncio.fixture
async def db():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_all(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


async def _job(db, number, customer, **fields):
    job = Job(
        job_number=number, customer_id=customer.id,
        appliance_type=fields.pop("appliance_type", "Oven"),
        appliance_brand="GE", issue_description="x", **fields,
    )
    db.add(job)
    await db.commit()
    return job


async def test_shop_settings_are_created_once_with_defaults(db):
    assert await crud.get_shop_settings(db) is None
    first = await crud.get_or_create_shop_settings(db)
    second = await crud.get_or_create_shop_settings(db)
    assert first.id == second.id
    assert first.company_name == "E-Repair Shop"
    assert first.job_number_prefix == "JOB-"
    assert first.invoice_number_prefix == "INV-"


async def test_update_shop_settings_skips_none(db):
    settings = await crud.get_or_create_shop_settings(db)
    updated = await crud.update_shop_settings(db, settings, company_phone="555", company_name=None)
    assert updated.company_phone == "555"
    assert updated.company_name == "E-Repair Shop"


async def test_user_email_is_normalised(db):
    user = await crud.create_user(db, "  Tech@Shop.TEST ", "hash", Role.TECHNICIAN.value)
    assert user.email == "tech@shop.test"
    assert (await crud.get_user_by_email(db, "TECH@shop.test")).id == user.id


async def test_list_technicians_only_active_technicians(db):
    await crud.create_user(db, "a@shop.test", "h", Role.ADMIN.value)
    tech = await crud.create_user(db, "t@shop.test", "h", Role.TECHNICIAN.value, first_name="Terry")
    gone = await crud.create_user(db, "g@shop.test", "h", Role.TECHNICIAN.value)
    gone.is_active = False
    await db.commit()

    assert [u.id for u in await crud.list_technicians(db)] == [tech.id]


async def test_customer_search(db):
    await crud.create_customer(db, first_name="Dana", last_name="Doe", email="dana@example.com", phone="1")
    await crud.create_customer(db, first_name="Sam", last_name="Lee", email="sam@example.com", phone="2")

    found = await crud.list_customers(db, search="dana")
    assert [c.first_name for c in found] == ["Dana"]
    assert len(await crud.list_customers(db)) == 2


async def test_list_jobs_filters_and_paginates(db):
    customer = await crud.create_customer(db, first_name="A", last_name="B", phone="1")
    for i in range(1, 6):
        await _job(db, f"JOB-0000{i}", customer, status=JobStatus.OPEN.value)
    await _job(db, "JOB-00006", customer, status=JobStatus.CLOSED.value, appliance_type="Dryer")

    jobs, total = await crud.list_jobs(db, status=JobStatus.OPEN.value, page=2, limit=2)
    assert total == 5
    assert len(jobs) == 2

    jobs, total = await crud.list_jobs(db, search="dryer")
    assert total == 1
    assert jobs[0].job_number == "JOB-00006"


async def test_status_history_is_ordered_oldest_first(db):
    customer = await crud.create_customer(db, first_name="A", last_name="B", phone="1")
    job = await _job(db, "JOB-00001", customer)
    for status in ("IN_PROGRESS", "AWAITING_PARTS", "CLOSED"):
        db.add(StatusHistory(job_id=job.id, status=status, notes=""))
        await db.commit()

    history = await crud.list_status_history(db, job.id)
    assert [h.status for h in history] == ["IN_PROGRESS", "AWAITING_PARTS", "CLOSED"]

    loaded = await crud.get_job(db, job.id)
    assert [h.status for h in loaded.status_history] == ["IN_PROGRESS", "AWAITING_PARTS", "CLOSED"]
    assert loaded.customer.full_name == "A B"


async def test_email_log_filter_by_related_id(db):
    await crud.create_email_log(db, recipient="a@x", subject="s", body="b", status="SENT",
                                email_type="TEST", related_id="r1")
    await crud.create_email_log(db, recipient="b@x", subject="s", body="b", status="FAILED",
                                email_type="TEST", related_id="r2")
    logs = await crud.list_email_logs(db, related_id="r1")
    assert [log.recipient for log in logs] == ["a@x"]
