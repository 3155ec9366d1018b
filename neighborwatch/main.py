"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from neighborwatch.api import api_router
from neighborwatch.core.config import Settings, get_settings
from neighborwatch.db.session import Database
from neighborwatch.services.open_data import OpenDataClient
from neighborwatch.services.scheduler import (
    create_scheduler,
    schedule_ingest_job,
    start_scheduler,
    stop_scheduler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.database
    await database.init()

    scheduler = None
    if settings.scheduled_ingest_zips:
        scheduler = create_scheduler()
        schedule_ingest_job(
            scheduler,
            database,
            app.state.open_data,
            settings.scheduled_ingest_zips,
            settings.ingest_interval_seconds,
        )
        start_scheduler(scheduler)
    else:
        logger.info("No watched zips configured; scheduled ingestion disabled")

    try:
        yield
    finally:
        if scheduler is not None:
            stop_scheduler(scheduler)
        await database.dispose()


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    open_data: OpenDataClient | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.database_echo)
    app.state.open_data = open_data or OpenDataClient.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/api/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
