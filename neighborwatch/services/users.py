"""User service functions for accounts, authentication and lockout."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.security import hash_password, verify_password
from neighborwatch.core.utils import as_utc
from neighborwatch.models.user import ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE, User
from neighborwatch.schemas.user import UserCreate
from neighborwatch.services.errors import ConflictError, InvalidArgumentError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."
ACCOUNT_LOCKED = "Account locked. Try again later."
ACCOUNT_DISABLED = "Account disabled."


@dataclass(slots=True)
class LoginResult:
    ok: bool
    user: User | None = None
    reason: str | None = None
    locked: bool = False


async def get_user(session: AsyncSession, user_id: int) -> User | None:
    return await session.get(User, user_id)


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username_lower == username.lower()))
    return result.scalar_one_or_none()


async def find_user_by_identifier(session: AsyncSession, identifier: str) -> User | None:
    """Look a user up by email or username, ignoring case."""
    normalized = identifier.strip().lower()
    result = await session.execute(
        select(User).where(or_(User.email_lower == normalized, User.username_lower == normalized))
    )
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, user_in: UserCreate, role: str = ROLE_USER) -> User:
    email_lower = user_in.email.lower()
    username_lower = user_in.username.lower()
    existing = await session.execute(
        select(User.id).where(or_(User.email_lower == email_lower, User.username_lower == username_lower))
    )
    if existing.first() is not None:
        raise ConflictError("Email or username already exists (case-insensitive).")

    user = User(
        email=user_in.email,
        email_lower=email_lower,
        username=user_in.username,
        username_lower=username_lower,
        password_hash=hash_password(user_in.password),
        role=role,
        status=STATUS_ACTIVE,
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        zip=user_in.zip,
        borough=user_in.borough,
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("Email or username already exists (case-insensitive).") from exc
    logger.info("Created %s account %s", role, user.username)
    return user


async def set_user_role(session: AsyncSession, user: User, role: str) -> User:
    if role not in (ROLE_USER, ROLE_ADMIN):
        raise InvalidArgumentError(f"Unknown role: {role}")
    user.role = role
    await session.flush()
    return user


async def verify_login(session: AsyncSession, identifier: str, password: str) -> LoginResult:
    """Check credentials without touching lockout counters.

    A locked account is refused before the password is compared, so the
    result reveals nothing about the password while the lock holds. Such
    attempts are flagged ``locked`` and must not count as new failures.
    """
    user = await find_user_by_identifier(session, identifier)
    if not user:
        return LoginResult(ok=False, reason=INVALID_CREDENTIALS)

    if user.locked_until and as_utc(user.locked_until) > datetime.now(timezone.utc):
        return LoginResult(ok=False, user=user, reason=ACCOUNT_LOCKED, locked=True)

    if user.status != STATUS_ACTIVE:
        return LoginResult(ok=False, user=user, reason=ACCOUNT_DISABLED)

    if not verify_password(password, user.password_hash):
        return LoginResult(ok=False, user=user, reason=INVALID_CREDENTIALS)
    return LoginResult(ok=True, user=user)


async def record_login_success(session: AsyncSession, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    user.failed_login_count = 0
    user.locked_until = None
    await session.flush()


async def record_login_failure(
    session: AsyncSession, user: User, max_failures: int = 5, lockout_minutes: int = 10
) -> None:
    user.failed_login_count = (user.failed_login_count or 0) + 1
    if user.failed_login_count >= max_failures:
        user.locked_until = datetime.now(timezone.utc) + timedelta(minutes=lockout_minutes)
        logger.warning(
            "Locking account %s for %s minutes after %s failed logins",
            user.username,
            lockout_minutes,
            user.failed_login_count,
        )
    else:
        user.locked_until = None
    await session.flush()
