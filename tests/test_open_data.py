"""Tests for the NYC Open Data client and its query building."""
from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
from conftest import make_row

from neighborwatch.services.errors import UpstreamError
from neighborwatch.services.open_data import IncidentQuery, build_params, build_where_clause

NOW = datetime(2024, 6, 15, 13, 30, tzinfo=timezone.utc)


def test_where_clause_has_date_bound_and_filters():
    where = build_where_clause(
        IncidentQuery(zip="11213", days=30, status="Open", complaint_type="Noise", agency="NYPD"), now=NOW
    )
    assert where == (
        "created_date >= '2024-05-16T00:00:00' AND incident_zip = '11213' AND status = 'Open' "
        "AND complaint_type = 'Noise' AND agency = 'NYPD'"
    )


def test_unbounded_query_has_no_date_clause():
    assert build_where_clause(IncidentQuery(zip="11213", days=None), now=NOW) == "incident_zip = '11213'"
    assert build_where_clause(IncidentQuery(days=None), now=NOW) is None


def test_quotes_are_escaped():
    where = build_where_clause(IncidentQuery(days=None, complaint_type="Dead Animal's"), now=NOW)
    assert where == "complaint_type = 'Dead Animal''s'"


def test_limit_is_capped():
    assert build_params(IncidentQuery(limit=20000), now=NOW)["$limit"] == "5000"
    assert build_params(IncidentQuery(limit=25), now=NOW)["$limit"] == "25"
    assert build_params(IncidentQuery(), now=NOW)["$order"] == "created_date DESC"


async def test_fetch_sends_query_and_token(socrata):
    socrata.queue([make_row(1), make_row(2), "garbage"])
    rows = await socrata.client().fetch_incidents(IncidentQuery(zip="11213", days=7))

    assert [row["unique_key"] for row in rows] == ["1", "2"]
    [request] = socrata.requests
    assert request.url.path == "/resource/erm2-nwe9.json"
    assert request.headers["X-App-Token"] == "test-token"
    assert "incident_zip = '11213'" in socrata.params[0]["$where"]


async def test_error_status_becomes_upstream_error(socrata):
    socrata.status_code = 503
    with pytest.raises(UpstreamError, match="503"):
        await socrata.client().fetch_incidents(IncidentQuery())


async def test_timeout_becomes_upstream_error(socrata):
    socrata.fail_with = httpx.ReadTimeout("too slow")
    with pytest.raises(UpstreamError, match="timed out"):
        await socrata.client().fetch_incidents(IncidentQuery())


async def test_connection_error_becomes_upstream_error(socrata):
    socrata.fail_with = httpx.ConnectError("refused")
    with pytest.raises(UpstreamError, match="failed"):
        await socrata.client().fetch_incidents(IncidentQuery())
