"""
AuthCore - Database Seed Script

Creates the demo accounts (and optionally an extra admin) for development.

Usage:
    python -m scripts.seed_users
    python -m scripts.seed_users --admin ops@example.com --password 'Change-me-2026'
"""

import argparse

from fastapi import FastAPI

from authcore.app import DEMO_USERS, build_services, seed_demo_users
from authcore.auth.database import get_engine, init_db
from authcore.auth.models import UserRole
from authcore.config import settings
from authcore.domain.exceptions import DomainException


def main():
    parser = argparse.ArgumentParser(description="Seed AuthCore users")
    parser.add_argument("--admin", help="Email of an additional SUPER_ADMIN account")
    parser.add_argument("--password", help="Password for the additional admin")
    args = parser.parse_args()

    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)

    holder = FastAPI()
    build_services(holder, engine, settings)
    service = holder.state.auth_service

    created = seed_demo_users(service)
    print(f"Demo users created: {created} of {len(DEMO_USERS)}")
    for email, password, role, _ in DEMO_USERS:
        print(f"  {email} / {password} ({role.value})")

    if args.admin:
        if not args.password:
            parser.error("--password is required with --admin")
        try:
            profile = service.create_test_user(args.admin, args.password, role=UserRole.SUPER_ADMIN, name="Administrator")
            print(f"Admin user created: {profile.email}")
        except DomainException as e:
            print(f"Admin user not created: {e.message}")

    engine.dispose()


if __name__ == "__main__":
    main()
