# Copyright (C) 2024 Dotify Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User accounts: registration, sign-in, profile updates."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dotify_server.auth import hash_password, verify_password
from dotify_server.config import settings
from dotify_server.errors import Conflict, Unauthorized
from dotify_server.models import User
from dotify_server.services import catalog

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def _email_taken(db: AsyncSession, email: str, exclude_id: int | None = None) -> bool:
    q = select(User.id).where(func.lower(User.email) == normalize_email(email))
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return await db.scalar(q) is not None


async def ensure_email_free(db: AsyncSession, email: str, exclude_id: int | None = None) -> None:
    if await _email_taken(db, email, exclude_id=exclude_id):
        raise Conflict("Email already registered")


async def register_user(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> User:
    if await _email_taken(db, email):
        raise Conflict("User already exists")
    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=hash_password(password),
        profile_picture=settings.default_profile_picture,
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    logger.info("Registered user %s", user.id)
    return await catalog.get_user(db, user.id)


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Return the user for valid credentials; one message for unknown email and wrong password."""
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    return user


async def update_profile(
    db: AsyncSession,
    user_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
    profile_picture: str | None = None,
) -> User:
    user = await catalog.get_user(db, user_id)
    if email is not None and normalize_email(email) != user.email:
        await ensure_email_free(db, email, exclude_id=user_id)
        user.email = normalize_email(email)
    if name is not None:
        user.name = name.strip()
    if password is not None:
        user.password_hash = hash_password(password)
    if profile_picture is not None:
        user.profile_picture = profile_picture
    await db.commit()
    return await catalog.get_user(db, user_id)
