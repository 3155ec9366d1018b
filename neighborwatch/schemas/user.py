"""Pydantic schemas for user operations."""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)


class UserProfile(BaseModel):
    first_name: str = Field(default="", max_length=64)
    last_name: str = Field(default="", max_length=64)
    zip: str = Field(default="", max_length=10)
    borough: str = Field(default="", max_length=32)


class UserCreate(UserProfile):
    email: str = Field(..., max_length=255)
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[A-Za-z0-9_]+$")
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email", "username", mode="before")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not _EMAIL_RE.match(value):
            raise ValueError("Email is invalid.")
        return value

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if not re.search(r"[A-Za-z]", value) or not re.search(r"[0-9]", value):
            raise ValueError("Password must contain letters and numbers.")
        return value


class UserRead(UserProfile):
    id: int
    email: str
    username: str
    role: str
    status: str
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
