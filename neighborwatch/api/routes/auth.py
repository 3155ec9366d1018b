"""Authentication endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.config import Settings
from neighborwatch.core.dependencies import get_app_settings, get_current_user, get_db
from neighborwatch.core.security import SESSION_COOKIE_NAME, SessionManager
from neighborwatch.models.user import User
from neighborwatch.schemas.auth import LoginRequest, SessionResponse
from neighborwatch.schemas.user import UserCreate, UserRead
from neighborwatch.services.errors import NeighborWatchError
from neighborwatch.services.users import (
    create_user,
    record_login_failure,
    record_login_success,
    verify_login,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, user: User, settings: Settings) -> None:
    sessions = SessionManager.from_settings(settings)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=sessions.issue(user),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=sessions.max_age,
    )


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    response: Response,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> UserRead:
    try:
        user = await create_user(session, payload)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    await session.commit()
    _set_session_cookie(response, user, settings)
    return UserRead.model_validate(user)


@router.post("/login", response_model=SessionResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> SessionResponse:
    result = await verify_login(session, payload.identifier, payload.password)
    if not result.ok:
        # Attempts during a lockout neither count nor extend the lock.
        if result.user is not None and not result.locked:
            await record_login_failure(
                session,
                result.user,
                max_failures=settings.max_failed_logins,
                lockout_minutes=settings.lockout_minutes,
            )
            await session.commit()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.reason)

    await record_login_success(session, result.user)
    await session.commit()
    _set_session_cookie(response, result.user, settings)
    return SessionResponse(username=result.user.username, role=result.user.role)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"ok": True}


@router.get("/me", response_model=UserRead)
async def get_current_user_info(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)
