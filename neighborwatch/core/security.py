"""Password hashing and the signed session cookie."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext

if TYPE_CHECKING:
    from neighborwatch.core.config import Settings
    from neighborwatch.models.user import User


SESSION_COOKIE_NAME = "neighborwatch_session"

_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return _password_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return _password_context.verify(password, hashed)


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    username: str
    role: str


class SessionManager:
    """Issue and read the cookie that identifies a logged-in user.

    The cookie carries ``{"uid", "sub", "role"}`` signed with the application
    secret. Tokens older than ``max_age`` seconds are refused.
    """

    def __init__(self, secret_key: str, max_age: int, salt: str = "neighborwatch-session") -> None:
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt=salt)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SessionManager":
        return cls(settings.secret_key, max_age=settings.access_token_expire_minutes * 60)

    def issue(self, user: "User") -> str:
        return self._serializer.dumps({"uid": user.id, "sub": user.username, "role": user.role})

    def read(self, token: str | None) -> SessionClaims | None:
        """Return the claims of a valid token, or ``None`` for anything else."""
        if not token:
            return None
        try:
            payload = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None

        if not isinstance(payload, dict):
            return None
        user_id = payload.get("uid")
        # bool is an int subclass
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None
        return SessionClaims(user_id=user_id, username=str(payload.get("sub", "")), role=str(payload.get("role", "")))
