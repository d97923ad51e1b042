"""Seed the database with a demo admin, technician, customer and job."""

import asyncio

from repairshop.db import crud
from repairshop.db.engine import async_session_factory, create_all
from repairshop.models.enums import Role
from repairshop.services.auth import AuthContext, hash_password
from repairshop.services.job_workflow import create_job


async def seed():
    await create_all()

    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, "admin@erepair.local"):
            print("Demo data already exists, skipping seed.")
            return

        settings = await crud.get_or_create_shop_settings(db)
        await crud.update_shop_settings(
            db, settings,
            company_phone="(555) 010-2000",
            company_address="12 Workshop Lane, Springfield",
            business_hours="Mon-Fri 9:00-17:00",
        )

        admin = await crud.create_user(
            db, "admin@erepair.local", hash_password("admin12345"), Role.ADMIN.value,
            first_name="Shop", last_name="Admin",
        )
        tech = await crud.create_user(
            db, "tech@erepair.local", hash_password("tech12345"), Role.TECHNICIAN.value,
            first_name="Terry", last_name="Tech",
        )
        print(f"Created admin: {admin.email}")
        print(f"Created technician: {tech.email}")

        customer = await crud.create_customer(
            db, first_name="Dana", last_name="Demo", email="dana@example.com", phone="555-0100",
        )
        job = await create_job(
            db,
            AuthContext.from_user(admin),
            customer_id=customer.id,
            appliance_type="Washing Machine",
            appliance_brand="Whirlpool",
            issue_description="Drum does not spin",
            assigned_technician_id=tech.id,
        )
        print(f"Created job: {job.job_number} for {customer.full_name}")

    print("\nSeed complete. Start the server with: uvicorn repairshop.main:app --reload")


if __name__ == "__main__":
    asyncio.run(seed())
