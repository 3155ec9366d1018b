"""Tests for incident normalization, caching and filtered retrieval."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from conftest import make_row

from neighborwatch.services import incidents as incident_service
from neighborwatch.services.incidents import IncidentFilters, normalize_incident, normalize_zip


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("7002", "07002"),
        ("07002", "07002"),
        (7002, "07002"),
        (" 11213 ", "11213"),
        ("11213-1234", "11213"),
        ("", None),
        (None, None),
        ("N/A", "N/A"),
    ],
)
def test_normalize_zip(raw, expected):
    assert normalize_zip(raw) == expected


def test_normalize_incident_coerces_fields():
    doc = normalize_incident(
        {
            "unique_key": 59812345,
            "complaint_type": "HEAT/HOT WATER",
            "descriptor": "",
            "incident_zip": "7002",
            "agency": "HPD",
            "status": "Open",
            "created_date": "2024-03-01T08:15:00.000",
            "latitude": "40.71",
            "longitude": "not-a-number",
        }
    )
    assert doc["open_data_id"] == "59812345"
    assert doc["incident_zip"] == "07002"
    assert doc["descriptor"] is None
    assert doc["latitude"] == pytest.approx(40.71)
    assert doc["longitude"] is None
    assert doc["created_date"] == datetime(2024, 3, 1, 8, 15, tzinfo=timezone.utc)


def test_normalize_incident_drops_rows_without_key_and_bad_dates():
    assert normalize_incident({"complaint_type": "Noise"}) is None
    assert normalize_incident({"unique_key": "  "}) is None
    assert normalize_incident({"unique_key": "1", "created_date": "yesterday"})["created_date"] is None


async def test_same_unique_key_is_stored_once(session):
    stored, inserted = await incident_service.save_incidents(session, [make_row(1), make_row(1)])
    assert (stored, inserted) == (1, 1)

    stored, inserted = await incident_service.save_incidents(session, [make_row(1), make_row(2)])
    await session.commit()
    assert (stored, inserted) == (2, 1)

    total = await incident_service.count_incidents(session, IncidentFilters(zip="11213"))
    assert total == 2


async def test_padded_and_unpadded_zips_share_a_bucket(session):
    await incident_service.save_incidents(
        session, [make_row("a", zip_code="7002"), make_row("b", zip_code="07002")]
    )
    await session.commit()
    found = await incident_service.list_incidents(session, IncidentFilters(zip="07002"))
    assert {incident.open_data_id for incident in found} == {"a", "b"}


async def test_get_incident_by_open_data_id(session):
    await incident_service.save_incidents(session, [make_row(555)])
    await session.commit()
    incident = await incident_service.get_incident(session, "555")
    assert incident.complaint_type == "Noise - Residential"
    assert await incident_service.get_incident(session, "556") is None


async def test_filters_sorting_and_paging(session):
    await incident_service.save_incidents(
        session,
        [
            make_row(1, days_ago=1, status="Open", complaint_type="Noise - Street/Sidewalk", agency="NYPD"),
            make_row(2, days_ago=2, status="Closed", complaint_type="Illegal Parking", agency="NYPD"),
            make_row(3, days_ago=3, status="Open", complaint_type="HEAT/HOT WATER", agency="HPD"),
            make_row(4, days_ago=4, status="Open", complaint_type="noise - residential", agency="NYPD"),
            make_row(5, days_ago=1, zip_code="10001"),
            make_row(6, created_date=None),
        ],
    )
    await session.commit()

    newest = await incident_service.list_incidents(session, IncidentFilters(zip="11213"))
    assert [i.open_data_id for i in newest] == ["1", "2", "3", "4"]

    oldest = await incident_service.list_incidents(session, IncidentFilters(zip="11213", sort="oldest"))
    assert [i.open_data_id for i in oldest] == ["4", "3", "2", "1"]

    noise = IncidentFilters(zip="11213", complaint_type="NOISE")
    assert [i.open_data_id for i in await incident_service.list_incidents(session, noise)] == ["1", "4"]
    assert noise.has_extra_filters

    open_nypd = IncidentFilters(zip="11213", status="Open", agency="nypd")
    assert [i.open_data_id for i in await incident_service.list_incidents(session, open_nypd)] == ["1", "4"]

    page_two = await incident_service.list_incidents(session, IncidentFilters(zip="11213"), skip=2, limit=2)
    assert [i.open_data_id for i in page_two] == ["3", "4"]
    assert await incident_service.count_incidents(session, IncidentFilters(zip="11213")) == 4
