"""Database model for cached 311 incidents."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from neighborwatch.db.base import Base, utcnow


class Incident(Base):
    """A 311 service request copied from NYC Open Data, keyed by its unique_key."""

    __tablename__ = "incidents"

    id: Mapped[int] = mapped_column(primary_key=True)
    open_data_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    complaint_type: Mapped[str | None] = mapped_column(String(128))
    descriptor: Mapped[str | None] = mapped_column(String(255))
    incident_zip: Mapped[str | None] = mapped_column(String(10), index=True)
    borough: Mapped[str | None] = mapped_column(String(32))
    agency: Mapped[str | None] = mapped_column(String(32))
    status: Mapped[str | None] = mapped_column(String(32))
    created_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
