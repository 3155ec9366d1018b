"""Shared fixtures: a throwaway SQLite database and a stubbed NYC Open Data API."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from neighborwatch.core.config import Settings
from neighborwatch.db.session import Database
from neighborwatch.main import create_app
from neighborwatch.models.user import ROLE_ADMIN
from neighborwatch.schemas.user import UserCreate
from neighborwatch.services.open_data import OpenDataClient
from neighborwatch.services.users import create_user, get_user_by_username, set_user_role

PASSWORD = "Passw0rd123"


def make_row(key: str | int, zip_code: str = "11213", days_ago: int = 1, **extra: Any) -> dict[str, Any]:
    created = datetime.now(timezone.utc) - timedelta(days=days_ago)
    row = {
        "unique_key": str(key),
        "complaint_type": "Noise - Residential",
        "descriptor": "Loud Music/Party",
        "incident_zip": zip_code,
        "borough": "BROOKLYN",
        "agency": "NYPD",
        "status": "Open",
        "created_date": created.strftime("%Y-%m-%dT%H:%M:%S.000"),
        "latitude": "40.6693",
        "longitude": "-73.9425",
    }
    row.update(extra)
    return row


class SocrataStub:
    """Answers open data requests from a queue of canned row lists."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[list[dict[str, Any]]] = []
        self.status_code = 200
        self.fail_with: Exception | None = None

    def queue(self, *responses: list[dict[str, Any]]) -> None:
        self.responses.extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if self.status_code >= 400:
            return httpx.Response(self.status_code, text="upstream exploded")
        rows = self.responses.pop(0) if self.responses else []
        return httpx.Response(200, json=rows)

    @property
    def params(self) -> list[dict[str, str]]:
        return [dict(request.url.params) for request in self.requests]

    def client(self) -> OpenDataClient:
        return OpenDataClient(
            base_url="https://data.example.test/resource",
            dataset_id="erm2-nwe9",
            app_token="test-token",
            timeout=5,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'neighborwatch-test.db'}"


@pytest_asyncio.fixture
async def database(database_url):
    db = Database(database_url)
    await db.init()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def users(session):
    """Three regular accounts: alice, bob and carol."""
    created = []
    for name in ("alice", "bob", "carol"):
        created.append(
            await create_user(
                session,
                UserCreate(email=f"{name}@example.com", username=name, password=PASSWORD),
            )
        )
    await session.commit()
    return created


@pytest.fixture
def socrata() -> SocrataStub:
    return SocrataStub()


@pytest.fixture
def settings(database_url) -> Settings:
    return Settings(
        database_url=database_url,
        secret_key="test-secret",
        session_cookie_secure=False,
        scheduled_ingest_zips=[],
    )


@pytest.fixture
def client(settings, socrata):
    app = create_app(settings=settings, open_data=socrata.client())
    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client


@pytest.fixture
def run_db(database_url) -> Callable:
    """Run a coroutine ``fn(session)`` against the test database and commit."""

    def runner(fn):
        async def _run():
            db = Database(database_url)
            try:
                async with db.session() as session:
                    result = await fn(session)
                    await session.commit()
                    return result
            finally:
                await db.dispose()

        return asyncio.run(_run())

    return runner


@pytest.fixture
def promote(run_db) -> Callable[[str], None]:
    def _promote(username: str) -> None:
        async def _apply(session):
            user = await get_user_by_username(session, username)
            await set_user_role(session, user, ROLE_ADMIN)

        run_db(_apply)

    return _promote


def register(client: TestClient, username: str, password: str = PASSWORD) -> httpx.Response:
    return client.post(
        "/api/auth/register",
        json={"email": f"{username}@example.com", "username": username, "password": password},
    )


def login(client: TestClient, identifier: str, password: str = PASSWORD) -> httpx.Response:
    client.cookies.clear()
    return client.post("/api/auth/login", json={"identifier": identifier, "password": password})
