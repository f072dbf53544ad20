#!/usr/bin/env python3
# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create admin user. Run: python -m dotify_server.scripts.create_admin"""

import asyncio
import getpass
import sys

from dotify_server.database import async_session_maker, init_db
from dotify_server.errors import Conflict
from dotify_server.services.accounts import register_user


async def main():
    await init_db()
    name = input("Admin name: ").strip()
    email = input("Admin email: ").strip()
    password = getpass.getpass("Password: ")
    if not name or not email or not password:
        print("All fields required")
        sys.exit(1)
    if len(password) < 6:
        print("Password must be at least 6 characters")
        sys.exit(1)

    async with async_session_maker() as session:
        try:
            user = await register_user(session, name=name, email=email, password=password, is_admin=True)
        except Conflict as e:
            print(e.detail)
            sys.exit(1)
        print(f"Admin user created (id {user.id}).")


if __name__ == "__main__":
    asyncio.run(main())
