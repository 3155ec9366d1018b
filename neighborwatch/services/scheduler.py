"""Background scheduler for periodic incident ingestion."""
from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from neighborwatch.db.session import Database
from neighborwatch.services.errors import UpstreamError
from neighborwatch.services.incidents import normalize_zip
from neighborwatch.services.ingestion import ingest
from neighborwatch.services.open_data import IncidentQuery, OpenDataClient

logger = logging.getLogger(__name__)

INGEST_JOB_ID = "ingest-watched-zips"


def create_scheduler() -> AsyncIOScheduler:
    return AsyncIOScheduler()


def schedule_ingest_job(
    scheduler: AsyncIOScheduler,
    database: Database,
    client: OpenDataClient,
    zips: list[str],
    interval_seconds: int,
) -> None:
    trigger = IntervalTrigger(seconds=interval_seconds)
    scheduler.add_job(
        ingest_watched_zips,
        trigger=trigger,
        id=INGEST_JOB_ID,
        args=[database, client, list(zips)],
        replace_existing=True,
    )
    logger.info("Scheduled ingestion of %s zip(s) every %s seconds", len(zips), interval_seconds)


def start_scheduler(scheduler: AsyncIOScheduler) -> None:
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler(scheduler: AsyncIOScheduler) -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)


async def ingest_watched_zips(database: Database, client: OpenDataClient, zips: list[str]) -> dict[str, int]:
    """Refresh each ZIP with the default lookback window.

    One ZIP failing does not stop the rest. Returns new rows per ZIP.
    """
    inserted: dict[str, int] = {}
    for raw_zip in zips:
        zip_code = normalize_zip(raw_zip)
        if not zip_code:
            continue
        async with database.session() as session:
            try:
                result = await ingest(session, client, IncidentQuery(zip=zip_code))
                await session.commit()
                inserted[zip_code] = result.inserted
            except UpstreamError as exc:
                logger.error("Scheduled ingestion for zip %s failed: %s", zip_code, exc)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error ingesting zip %s: %s", zip_code, exc)
    return inserted
