"""Date helpers shared by the stores."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def window_start(days: int, now: datetime | None = None) -> datetime:
    """Midnight (UTC) of the day ``days`` days before ``now``."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    start = now.astimezone(timezone.utc) - timedelta(days=days)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)
