"""Pydantic schemas for incidents, feed pages and ingestion requests."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class IncidentRead(BaseModel):
    open_data_id: str
    complaint_type: str | None = None
    descriptor: str | None = None
    incident_zip: str | None = None
    borough: str | None = None
    agency: str | None = None
    status: str | None = None
    created_date: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None

    model_config = ConfigDict(from_attributes=True)


class FeedPage(BaseModel):
    zip: str
    page: int
    page_size: int
    total: int
    has_more: bool
    fetched_from_source: bool = Field(
        default=False, description="True when the page was filled by a fallback fetch from NYC Open Data"
    )
    items: list[IncidentRead]


class IngestRequest(BaseModel):
    zip: str | None = Field(default=None, pattern=r"^\d{3,5}$")
    days: int | None = Field(default=30, ge=1, le=3650, description="Lookback window; null fetches without a date bound")
    limit: int = Field(default=1000, ge=1)
    status: str | None = Field(default=None, max_length=32)
    complaint_type: str | None = Field(default=None, max_length=128)
    agency: str | None = Field(default=None, max_length=32)


class IngestResponse(BaseModel):
    fetched: int
    stored: int
    inserted: int


SortOrder = Literal["newest", "oldest"]
