"""Service layer for the cached incident collection."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.models.incident import Incident

logger = logging.getLogger(__name__)

INSERT_BATCH_SIZE = 500


@dataclass(slots=True)
class IncidentFilters:
    zip: str
    status: str | None = None
    complaint_type: str | None = None
    agency: str | None = None
    sort: str = "newest"

    @property
    def has_extra_filters(self) -> bool:
        return bool(self.status or self.complaint_type or self.agency)


def normalize_zip(value: Any) -> str | None:
    """Zero-pad a ZIP to five digits; ZIP+4 suffixes are dropped."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    head = text.split("-", 1)[0].strip()
    if head.isascii() and head.isdecimal() and len(head) <= 5:
        return head.zfill(5)
    return text


def _to_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_incident(row: dict[str, Any]) -> dict[str, Any] | None:
    """Map a raw open data row onto Incident columns; rows without a unique_key are dropped."""
    unique_key = row.get("unique_key")
    if unique_key is None or str(unique_key).strip() == "":
        return None
    return {
        "open_data_id": str(unique_key).strip(),
        "complaint_type": _text(row.get("complaint_type")),
        "descriptor": _text(row.get("descriptor")),
        "incident_zip": normalize_zip(row.get("incident_zip")),
        "borough": _text(row.get("borough")),
        "agency": _text(row.get("agency")),
        "status": _text(row.get("status")),
        "created_date": _to_datetime(row.get("created_date")),
        "latitude": _to_float(row.get("latitude")),
        "longitude": _to_float(row.get("longitude")),
        "created_at": datetime.now(timezone.utc),
    }


def _insert_ignoring_duplicates(session: AsyncSession, rows: list[dict[str, Any]]):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(Incident).values(rows)
    elif dialect == "sqlite":
        stmt = sqlite.insert(Incident).values(rows)
    else:
        raise NotImplementedError(f"Incident upserts are not supported on {dialect}")
    return stmt.on_conflict_do_nothing(index_elements=["open_data_id"])


async def save_incidents(session: AsyncSession, raw_rows: Iterable[dict[str, Any]]) -> tuple[int, int]:
    """Insert normalized rows, skipping ones whose open_data_id is already stored.

    Returns ``(stored, inserted)``: rows that survived normalization and rows
    that were new to the cache.
    """
    docs: dict[str, dict[str, Any]] = {}
    for raw in raw_rows:
        doc = normalize_incident(raw)
        if doc is not None:
            docs.setdefault(doc["open_data_id"], doc)
    rows = list(docs.values())
    if not rows:
        return 0, 0

    inserted = 0
    for start in range(0, len(rows), INSERT_BATCH_SIZE):
        batch = rows[start : start + INSERT_BATCH_SIZE]
        result = await session.execute(_insert_ignoring_duplicates(session, batch))
        if result.rowcount and result.rowcount > 0:
            inserted += result.rowcount
    await session.flush()
    logger.info("Stored %s incident rows (%s new)", len(rows), inserted)
    return len(rows), inserted


async def get_incident(session: AsyncSession, open_data_id: str) -> Incident | None:
    result = await session.execute(select(Incident).where(Incident.open_data_id == str(open_data_id)))
    return result.scalar_one_or_none()


async def get_incidents_by_ids(session: AsyncSession, open_data_ids: Iterable[str]) -> dict[str, Incident]:
    ids = [str(value) for value in open_data_ids]
    if not ids:
        return {}
    result = await session.execute(select(Incident).where(Incident.open_data_id.in_(ids)))
    return {incident.open_data_id: incident for incident in result.scalars().all()}


def _filtered(stmt, filters: IncidentFilters):
    stmt = stmt.where(Incident.incident_zip == filters.zip, Incident.created_date.is_not(None))
    if filters.status:
        stmt = stmt.where(Incident.status == filters.status)
    if filters.complaint_type:
        stmt = stmt.where(Incident.complaint_type.ilike(f"%{filters.complaint_type}%"))
    if filters.agency:
        stmt = stmt.where(Incident.agency.ilike(f"%{filters.agency}%"))
    return stmt


async def list_incidents(
    session: AsyncSession, filters: IncidentFilters, skip: int = 0, limit: int = 10
) -> list[Incident]:
    order = Incident.created_date.asc() if filters.sort == "oldest" else Incident.created_date.desc()
    stmt = _filtered(select(Incident), filters).order_by(order, Incident.id).offset(max(skip, 0)).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_incidents(session: AsyncSession, filters: IncidentFilters) -> int:
    result = await session.execute(_filtered(select(func.count(Incident.id)), filters))
    return int(result.scalar_one())
