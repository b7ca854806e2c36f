#!/usr/bin/env python3
"""
Seed the default administrator.

Creates the admin user (cedula 000000001) unless a user with that cedula
already exists. Run once after creating the database tables:

    poetry run python scripts/init_users.py
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

from core.models.user import UserCreate, UserRole
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient

ADMIN_CEDULA = "000000001"
ADMIN_EMAIL = "admin@kelloggsbd.local"
ADMIN_PASSWORD = "Admin123!"
ADMIN_NAME = "Administrador General"


def main() -> int:
    existing = SupabaseClient.fetch_first("users", filters={"cedula": ADMIN_CEDULA})
    if existing:
        print(f"Admin user already exists (cedula {ADMIN_CEDULA}, id {existing['id']})")
        return 0

    user = UserService.create_user(UserCreate(
        cedula=ADMIN_CEDULA,
        name=ADMIN_NAME,
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        role=UserRole.ADMIN,
    ))

    print("Default admin user created:")
    print(f"   Cedula:   {ADMIN_CEDULA}")
    print(f"   Email:    {ADMIN_EMAIL}")
    print(f"   Password: {ADMIN_PASSWORD}")
    print(f"   Id:       {user['id']}")
    print("Change this password after the first login.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
