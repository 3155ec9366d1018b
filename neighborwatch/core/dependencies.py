"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.config import Settings
from neighborwatch.core.security import SESSION_COOKIE_NAME, SessionManager
from neighborwatch.models.user import STATUS_ACTIVE, User
from neighborwatch.services.errors import ForbiddenError, UnauthorizedError
from neighborwatch.services.open_data import OpenDataClient
from neighborwatch.services.users import get_user


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.database.session() as session:
        yield session


def get_open_data_client(request: Request) -> OpenDataClient:
    return request.app.state.open_data


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> User | None:
    claims = SessionManager.from_settings(settings).read(request.cookies.get(SESSION_COOKIE_NAME))
    if claims is None:
        return None

    user = await get_user(session, claims.user_id)
    if not user or user.status != STATUS_ACTIVE:
        return None
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        exc = UnauthorizedError("Not authenticated")
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        exc = ForbiddenError("Admin access required")
        raise HTTPException(status_code=exc.status_code, detail=str(exc))
    return user
