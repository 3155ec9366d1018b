#!/usr/bin/env python3
"""Reset the database and load demo users, incidents, comments, votes and reports."""
from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from neighborwatch.core.config import get_settings
from neighborwatch.db.base import Base
from neighborwatch.db.session import Database
from neighborwatch.models.user import ROLE_ADMIN
from neighborwatch.schemas.user import UserCreate
from neighborwatch.services import comments as comment_service
from neighborwatch.services.incidents import save_incidents
from neighborwatch.services.users import create_user, set_user_role

logger = logging.getLogger("neighborwatch.seed")


def days_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=n)


SEED_USERS = [
    dict(email="demo@example.com", username="demoUser", password="DemoPass123!",
         first_name="Demo", last_name="User", zip="11213", borough="BROOKLYN"),
    dict(email="tester@example.com", username="testerUser", password="TesterPass123!",
         first_name="Test", last_name="User", zip="10001", borough="MANHATTAN"),
    dict(email="admin@example.com", username="adminUser", password="AdminPass123!",
         first_name="Admin", last_name="User", zip="11101", borough="QUEENS"),
]

SEED_INCIDENTS = [
    {
        "unique_key": "SEED-100001",
        "complaint_type": "Noise - Residential",
        "descriptor": "Loud music after midnight",
        "borough": "BROOKLYN",
        "incident_zip": "11213",
        "agency": "NYPD",
        "status": "Open",
        "latitude": "40.6693",
        "longitude": "-73.9425",
        "created_date": days_ago(1).isoformat(),
    },
    {
        "unique_key": "SEED-100002",
        "complaint_type": "Illegal Parking",
        "descriptor": "Vehicle blocking driveway",
        "borough": "MANHATTAN",
        "incident_zip": "10001",
        "agency": "NYPD",
        "status": "Closed",
        "latitude": "40.7506",
        "longitude": "-73.9972",
        "created_date": days_ago(8).isoformat(),
    },
    {
        "unique_key": "SEED-100003",
        "complaint_type": "Street Condition",
        "descriptor": "Pothole in roadway",
        "borough": "QUEENS",
        "incident_zip": "11101",
        "agency": "DOT",
        "status": "Open",
        "latitude": "40.7447",
        "longitude": "-73.9485",
        "created_date": days_ago(20).isoformat(),
    },
]

# (incident, author index, content, age in days, likers, dislikers)
SEED_COMMENTS = [
    ("SEED-100001", 0, "Happened again last night. Please address this.", 1, [1], []),
    ("SEED-100001", 1, "I heard it too around 1AM.", 1, [], [0]),
    ("SEED-100001", 2, "Admin note: keep comments respectful; reports will be reviewed.", 1, [0, 1], []),
    ("SEED-100002", 0, "This driveway gets blocked constantly.", 8, [1], []),
    ("SEED-100002", 1, "I saw a tow truck come by earlier.", 7, [], []),
    ("SEED-100003", 0, "Pothole is getting worse after the rain.", 20, [], []),
    ("SEED-100003", 1, "Almost damaged my tire here.", 18, [], [0]),
    ("SEED-100003", 2, "Admin: reported to DOT; keep updates coming.", 18, [0], []),
]

# (comment index, reporter index, reason)
SEED_REPORTS = [
    (1, 0, "Unhelpful / misinformation"),
    (6, 1, "Rude language"),
]


async def seed(database: Database) -> None:
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.init()

    async with database.session() as session:
        logger.info("Seeding users...")
        users = [await create_user(session, UserCreate(**data)) for data in SEED_USERS]
        await set_user_role(session, users[2], ROLE_ADMIN)

        logger.info("Seeding incidents...")
        await save_incidents(session, SEED_INCIDENTS)

        logger.info("Seeding comments and votes...")
        comments = []
        for incident_id, author, content, age, likers, dislikers in SEED_COMMENTS:
            comment = await comment_service.create_comment(session, incident_id, users[author], content)
            comment.created_at = days_ago(age)
            for index in likers:
                await comment_service.vote(session, comment.id, users[index].id, "like")
            for index in dislikers:
                await comment_service.vote(session, comment.id, users[index].id, "dislike")
            comments.append(comment)

        logger.info("Seeding reports...")
        for comment_index, reporter, reason in SEED_REPORTS:
            await comment_service.report(session, comments[comment_index].id, users[reporter].id, reason)

        await session.commit()

    logger.info("Seed complete. Logins:")
    for data in SEED_USERS:
        logger.info("  %s / %s | %s", data["username"], data["email"], data["password"])
    logger.info("Seeded zips: 11213, 10001, 11101")


async def main() -> None:
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        await seed(database)
    finally:
        await database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(main())
