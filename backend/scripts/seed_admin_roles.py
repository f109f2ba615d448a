"""
Seed admin roles and, optionally, register one admin user.

Every role in the capability table gets an ``admin_roles`` row; role names
outside the table are never created. Safe to run repeatedly.

Usage:
    python -m scripts.seed_admin_roles
    python -m scripts.seed_admin_roles --user-id <uuid> --email ops@autobid.example --role operations_admin
"""
import argparse
import asyncio
import os
import sys
import uuid

# Add parent directory to path to import autobid_admin modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from autobid_admin.database import dispose_engine, get_session_factory
from autobid_admin.models import AdminRoleRecord, AdminUser
from autobid_admin.rbac.permissions import ROLE_PERMISSIONS, AdminRole


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--user-id", type=uuid.UUID, help="auth service user id")
    parser.add_argument("--email")
    parser.add_argument("--role", choices=[role.value for role in AdminRole])
    args = parser.parse_args(argv)
    given = [args.user_id, args.email, args.role]
    if any(given) and not all(given):
        parser.error("--user-id, --email and --role must be given together")
    return args


async def seed_admin_roles(args: argparse.Namespace) -> None:
    try:
        async with get_session_factory()() as session:
            async with session.begin():
                role_ids = await _seed_roles(session)
                if args.user_id is not None:
                    await _register_admin(session, args, role_ids)
    finally:
        await dispose_engine()


async def _seed_roles(session) -> dict[str, uuid.UUID]:
    result = await session.execute(select(AdminRoleRecord))
    role_ids = {record.role_name: record.id for record in result.scalars()}

    print("Seeding admin roles...")
    for role in AdminRole:
        if role.value in role_ids:
            print(f"  Role '{role.value}' already exists, skipping...")
            continue
        record = AdminRoleRecord(id=uuid.uuid4(), role_name=role.value)
        session.add(record)
        role_ids[role.value] = record.id
        print(
            f"  Created role: {role.value} "
            f"({len(ROLE_PERMISSIONS[role])} capabilities)"
        )
    return role_ids


async def _register_admin(session, args: argparse.Namespace, role_ids: dict[str, uuid.UUID]) -> None:
    admin_user = await session.get(AdminUser, args.user_id)
    if admin_user is None:
        session.add(
            AdminUser(
                id=args.user_id,
                email=args.email,
                role_id=role_ids[args.role],
                is_active=True,
            )
        )
        print(f"\nRegistered admin {args.email} as {args.role}")
    else:
        admin_user.email = args.email
        admin_user.role_id = role_ids[args.role]
        admin_user.is_active = True
        print(f"\nUpdated admin {args.email} to {args.role}")


if __name__ == "__main__":
    asyncio.run(seed_admin_roles(parse_args()))
