"""Tests for trending incident aggregation."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from neighborwatch.core.utils import window_start
from neighborwatch.services import comments as comment_service
from neighborwatch.services.errors import InvalidArgumentError


async def _comment(session, incident_id, author, age_days=0, likes=(), dislikes=()):
    comment = await comment_service.create_comment(session, incident_id, author, f"about {incident_id}")
    comment.created_at = datetime.now(timezone.utc) - timedelta(days=age_days)
    await session.flush()
    for user in likes:
        await comment_service.vote(session, comment.id, user.id, "like")
    for user in dislikes:
        await comment_service.vote(session, comment.id, user.id, "dislike")
    return comment


def test_window_start_truncates_to_midnight():
    now = datetime(2024, 5, 10, 15, 42, 7, tzinfo=timezone.utc)
    assert window_start(1, now) == datetime(2024, 5, 9, tzinfo=timezone.utc)
    assert window_start(7, now) == datetime(2024, 5, 3, tzinfo=timezone.utc)
    assert window_start(30, now) == datetime(2024, 4, 10, tzinfo=timezone.utc)


async def test_trending_by_comment_count(session, users):
    alice, bob, carol = users
    await _comment(session, "A", alice)
    await _comment(session, "B", alice)
    await _comment(session, "B", bob)
    await _comment(session, "B", carol)
    await _comment(session, "C", bob)
    await _comment(session, "C", carol)
    await session.commit()

    entries = await comment_service.trending(session, trend_type="comments", period="week", limit=2)
    assert [(e.incident_id, e.count) for e in entries] == [("B", 3), ("C", 2)]


async def test_trending_likes_for_the_day_skips_old_and_rejected(session, users):
    alice, bob, carol = users
    await _comment(session, "fresh-popular", alice, likes=[bob, carol])
    await _comment(session, "fresh-popular", bob, likes=[alice])
    await _comment(session, "fresh-quiet", carol, likes=[alice])
    await _comment(session, "old", alice, age_days=3, likes=[alice, bob, carol])
    rejected = await _comment(session, "rejected", bob, likes=[alice, bob, carol])
    await comment_service.moderate(session, rejected.id, "reject", carol.id)
    await session.commit()

    entries = await comment_service.trending(session, trend_type="likes", period="day", limit=10)
    assert [(e.incident_id, e.count) for e in entries] == [("fresh-popular", 3), ("fresh-quiet", 1)]
    assert all(e.latest_comment.tzinfo is not None for e in entries)


async def test_trending_dislikes_over_all_time(session, users):
    alice, bob, carol = users
    await _comment(session, "ancient", alice, age_days=400, dislikes=[bob, carol])
    await _comment(session, "recent", bob, dislikes=[alice])
    await session.commit()

    month = await comment_service.trending(session, trend_type="dislikes", period="month")
    assert [(e.incident_id, e.count) for e in month] == [("recent", 1)]

    everything = await comment_service.trending(session, trend_type="dislikes", period="all")
    assert [(e.incident_id, e.count) for e in everything] == [("ancient", 2), ("recent", 1)]


async def test_trending_reports_latest_comment_time(session, users):
    alice, bob, _ = users
    older = await _comment(session, "X", alice, age_days=2)
    newer = await _comment(session, "X", bob)
    await session.commit()

    [entry] = await comment_service.trending(session, trend_type="comments", period="week")
    assert entry.count == 2
    assert abs((entry.latest_comment - newer.created_at).total_seconds()) < 1
    assert entry.latest_comment > older.created_at


@pytest.mark.parametrize(
    "kwargs",
    [
        {"trend_type": "shares"},
        {"period": "year"},
        {"limit": 0},
    ],
)
async def test_trending_rejects_bad_parameters(session, kwargs):
    with pytest.raises(InvalidArgumentError):
        await comment_service.trending(session, **kwargs)
