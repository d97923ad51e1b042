"""CLI for E-Repair Shop — create tables, users and the settings row."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys


async def cmd_init_db(args):
    """Create all tables and the default settings row."""
    from repairshop.db import crud
    from repairshop.db.engine import async_session_factory, create_all

    await create_all()
    async with async_session_factory() as db:
        settings = await crud.get_or_create_shop_settings(db)
    print(f"Database ready. Company: {settings.company_name}")


async def cmd_create_user(args):
    """Create a staff user (admin or technician)."""
    from repairshop.db import crud
    from repairshop.db.engine import async_session_factory, create_all
    from repairshop.services.auth import hash_password

    await create_all()

    password = args.password
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)

    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, args.email):
            print(f"User already exists: {args.email}")
            sys.exit(1)
        user = await crud.create_user(
            db,
            email=args.email,
            password_hash=hash_password(password),
            role=args.role.upper(),
            first_name=args.first_name,
            last_name=args.last_name,
        )

    print(f"User created: {user.email} (id={user.id}, role={user.role})")


async def cmd_seed_settings(args):
    """Create or update the settings row from command-line values."""
    from repairshop.db import crud
    from repairshop.db.engine import async_session_factory, create_all

    await create_all()
    async with async_session_factory() as db:
        settings = await crud.get_or_create_shop_settings(db)
        settings = await crud.update_shop_settings(
            db, settings,
            company_name=args.company_name,
            company_email=args.company_email,
            company_phone=args.company_phone,
            company_address=args.company_address,
            business_hours=args.business_hours,
        )
    print(f"Settings saved for {settings.company_name}")


async def cmd_encrypt_existing(args):
    """Re-encrypt a plaintext SMTP password stored before FERNET_KEY was set."""
    from sqlalchemy import text

    from repairshop.db.engine import async_session_factory
    from repairshop.services.encryption import encrypt_value

    async with async_session_factory() as db:
        rows = (await db.execute(text("SELECT id, smtp_password FROM settings"))).fetchall()
        for row in rows:
            val = row[1]
            if val and not val.startswith("gAAAAA"):  # Not already encrypted
                await db.execute(
                    text("UPDATE settings SET smtp_password = :pw WHERE id = :id"),
                    {"pw": encrypt_value(val), "id": row[0]},
                )
                print(f"  Encrypted SMTP password: {row[0]}")
        await db.commit()

    print("Encryption migration complete.")


def main():
    parser = argparse.ArgumentParser(description="E-Repair Shop CLI")
    subparsers = parser.add_subparsers(dest="command")

    # init-db
    subparsers.add_parser("init-db", help="Create tables and default settings")

    # create-user
    cu = subparsers.add_parser("create-user", help="Create a staff user")
    cu.add_argument("--email", required=True, help="Login email")
    cu.add_argument("--password", default="", help="Password (prompted if not given)")
    cu.add_argument("--role", default="ADMIN", choices=["ADMIN", "TECHNICIAN", "admin", "technician"])
    cu.add_argument("--first-name", default="", help="First name")
    cu.add_argument("--last-name", default="", help="Last name")

    # seed-settings
    ss = subparsers.add_parser("seed-settings", help="Set company contact details")
    ss.add_argument("--company-name", default=None)
    ss.add_argument("--company-email", default=None)
    ss.add_argument("--company-phone", default=None)
    ss.add_argument("--company-address", default=None)
    ss.add_argument("--business-hours", default=None)

    # encrypt-existing
    subparsers.add_parser("encrypt-existing", help="Encrypt a plaintext SMTP password (requires FERNET_KEY)")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "seed-settings":
        asyncio.run(cmd_seed_settings(args))
    elif args.command == "encrypt-existing":
        asyncio.run(cmd_encrypt_existing(args))


if __name__ == "__main__":
    main()
