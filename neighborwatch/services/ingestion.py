"""Fetch-normalize-persist workflow between NYC Open Data and the incident cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.models.incident import Incident
from neighborwatch.services import incidents as incident_service
from neighborwatch.services.incidents import IncidentFilters
from neighborwatch.services.open_data import IncidentQuery, OpenDataClient

logger = logging.getLogger(__name__)

FALLBACK_WINDOWS_DAYS = (30, 90, 180, 365)


@dataclass(slots=True)
class IngestResult:
    fetched: int
    stored: int
    inserted: int


@dataclass(slots=True)
class FeedResult:
    items: list[Incident]
    total: int
    fetched_from_source: bool = False


async def ingest(session: AsyncSession, client: OpenDataClient, query: IncidentQuery) -> IngestResult:
    rows = await client.fetch_incidents(query)
    stored, inserted = await incident_service.save_incidents(session, rows)
    logger.info(
        "Ingested zip=%s days=%s: fetched %s, stored %s, new %s",
        query.zip or "*",
        query.days if query.days is not None else "all",
        len(rows),
        stored,
        inserted,
    )
    return IngestResult(fetched=len(rows), stored=stored, inserted=inserted)


async def backfill_zip(
    session: AsyncSession, client: OpenDataClient, zip_code: str, page_size: int = 10
) -> bool:
    """Widen the lookback window until a ZIP has at least one page of rows.

    Every non-empty window is persisted. When all windows come back empty a
    single fetch without a date bound is made. Returns True if anything was
    fetched.
    """
    found_any = False
    for days in FALLBACK_WINDOWS_DAYS:
        result = await ingest(session, client, IncidentQuery(zip=zip_code, days=days))
        if result.fetched:
            found_any = True
        if result.fetched >= page_size:
            logger.info("Backfilled zip %s from a %s day window", zip_code, days)
            return True

    if not found_any:
        result = await ingest(session, client, IncidentQuery(zip=zip_code, days=None))
        found_any = result.fetched > 0
        logger.info("Backfilled zip %s from full history (%s rows)", zip_code, result.fetched)
    return found_any


async def load_feed_page(
    session: AsyncSession,
    client: OpenDataClient,
    filters: IncidentFilters,
    page: int = 1,
    page_size: int = 10,
) -> FeedResult:
    skip = (max(page, 1) - 1) * page_size
    items = await incident_service.list_incidents(session, filters, skip=skip, limit=page_size)
    fetched_from_source = False

    if not items and skip == 0 and not filters.has_extra_filters:
        fetched_from_source = await backfill_zip(session, client, filters.zip, page_size=page_size)
        if fetched_from_source:
            items = await incident_service.list_incidents(session, filters, skip=skip, limit=page_size)

    total = await incident_service.count_incidents(session, filters)
    return FeedResult(items=items, total=total, fetched_from_source=fetched_from_source)
