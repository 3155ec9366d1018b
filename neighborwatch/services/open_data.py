"""HTTP client for the NYC Open Data (Socrata) 311 service request dataset."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from neighborwatch.core.config import Settings
from neighborwatch.core.utils import window_start
from neighborwatch.services.errors import UpstreamError

logger = logging.getLogger(__name__)

MAX_ROWS_PER_REQUEST = 5000
DATE_COLUMN = "created_date"
SELECT_COLUMNS = (
    "unique_key",
    "complaint_type",
    "descriptor",
    "incident_zip",
    "borough",
    "agency",
    "status",
    "created_date",
    "latitude",
    "longitude",
)


@dataclass(slots=True)
class IncidentQuery:
    """Filters for one request against the dataset.

    ``days=None`` lifts the date bound and asks for the full history.
    """

    zip: str | None = None
    days: int | None = 30
    limit: int = 1000
    status: str | None = None
    complaint_type: str | None = None
    agency: str | None = None


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def build_where_clause(query: IncidentQuery, now: datetime | None = None) -> str | None:
    clauses: list[str] = []
    if query.days is not None:
        start = window_start(query.days, now)
        clauses.append(f"{DATE_COLUMN} >= '{start.strftime('%Y-%m-%dT%H:%M:%S')}'")
    if query.zip:
        clauses.append(f"incident_zip = {_quote(query.zip)}")
    if query.status:
        clauses.append(f"status = {_quote(query.status)}")
    if query.complaint_type:
        clauses.append(f"complaint_type = {_quote(query.complaint_type)}")
    if query.agency:
        clauses.append(f"agency = {_quote(query.agency)}")
    return " AND ".join(clauses) if clauses else None


def build_params(query: IncidentQuery, now: datetime | None = None) -> dict[str, str]:
    params = {
        "$select": ",".join(SELECT_COLUMNS),
        "$order": f"{DATE_COLUMN} DESC",
        "$limit": str(max(1, min(query.limit, MAX_ROWS_PER_REQUEST))),
    }
    where = build_where_clause(query, now)
    if where:
        params["$where"] = where
    return params


class OpenDataClient:
    """Fetch raw 311 rows as plain dictionaries."""

    def __init__(
        self,
        base_url: str,
        dataset_id: str,
        app_token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/{dataset_id}.json"
        self._app_token = app_token
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenDataClient":
        return cls(
            base_url=settings.open_data_base_url,
            dataset_id=settings.open_data_dataset_id,
            app_token=settings.open_data_app_token,
            timeout=settings.open_data_timeout_seconds,
        )

    async def fetch_incidents(self, query: IncidentQuery) -> list[dict[str, Any]]:
        params = build_params(query)
        headers = {"Accept": "application/json"}
        if self._app_token:
            headers["X-App-Token"] = self._app_token

        logger.debug("Fetching open data rows with %s", params)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(self._endpoint, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise UpstreamError("NYC Open Data request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"NYC Open Data request failed: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamError(f"NYC Open Data response {response.status_code}: {response.text[:200]}")

        try:
            rows = response.json()
        except ValueError as exc:
            raise UpstreamError("NYC Open Data returned invalid JSON") from exc
        if not isinstance(rows, list):
            raise UpstreamError("NYC Open Data returned an unexpected payload")
        return [row for row in rows if isinstance(row, dict)]
