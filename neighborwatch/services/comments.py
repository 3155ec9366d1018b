"""Service layer for comments: threads, votes, reports, moderation and trends."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from neighborwatch.core.utils import as_utc, window_start
from neighborwatch.models.comment import (
    COMMENT_STATUSES,
    STATUS_APPROVED,
    STATUS_REJECTED,
    VOTE_DISLIKE,
    VOTE_LIKE,
    VOTE_TYPES,
    Comment,
    CommentReport,
    CommentVote,
)
from neighborwatch.models.user import User
from neighborwatch.services.errors import ConflictError, InvalidArgumentError, NotFoundError

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1000
MAX_MODERATION_PAGE = 100

MODERATION_ACTIONS = ("approve", "reject", "delete")

TREND_TYPES = ("comments", "likes", "dislikes")
TREND_PERIOD_DAYS: dict[str, int | None] = {"day": 1, "week": 7, "month": 30, "all": None}
MAX_TREND_LIMIT = 50

# Largest value a 64-bit INTEGER primary key can hold.
MAX_ID = 2**63 - 1


@dataclass(slots=True)
class VoteResult:
    comment_id: int
    likes: int
    dislikes: int
    user_vote: str | None


@dataclass(slots=True)
class TrendingEntry:
    incident_id: str
    count: int
    latest_comment: datetime


def _parse_id(value: Any, label: str) -> int:
    if value is None or value == "":
        raise InvalidArgumentError(f"{label} is required.")
    if isinstance(value, bool):
        raise InvalidArgumentError(f"Invalid {label}.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdecimal() and value.strip().isascii():
        parsed = int(value.strip())
    else:
        raise InvalidArgumentError(f"Invalid {label}.")
    if parsed <= 0 or parsed > MAX_ID:
        raise InvalidArgumentError(f"Invalid {label}.")
    return parsed


def _with_children(stmt):
    return stmt.options(selectinload(Comment.votes), selectinload(Comment.reports))


async def _require_comment(session: AsyncSession, comment_id: int) -> Comment:
    comment = await session.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found.")
    return comment


async def get_comment(session: AsyncSession, comment_id: Any) -> Comment | None:
    cid = _parse_id(comment_id, "Comment id")
    result = await session.execute(
        _with_children(select(Comment).where(Comment.id == cid)).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_comment(session: AsyncSession, incident_id: str, user: User, content: str) -> Comment:
    if not incident_id or not str(incident_id).strip():
        raise InvalidArgumentError("Incident id is required.")
    text = (content or "").strip()
    if not text:
        raise InvalidArgumentError("Comment cannot be empty.")
    if len(text) > MAX_CONTENT_LENGTH:
        raise InvalidArgumentError(f"Comment must be at most {MAX_CONTENT_LENGTH} characters.")

    comment = Comment(
        incident_id=str(incident_id).strip(),
        user_id=user.id,
        username=user.username,
        content=text,
        status=STATUS_APPROVED,
        created_at=datetime.now(timezone.utc),
        votes=[],
        reports=[],
    )
    session.add(comment)
    await session.flush()
    return comment


async def list_comments(session: AsyncSession, incident_id: str) -> list[Comment]:
    """Public thread for an incident: approved comments only, newest first."""
    result = await session.execute(
        _with_children(
            select(Comment)
            .where(Comment.incident_id == str(incident_id), Comment.status == STATUS_APPROVED)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
    )
    return list(result.scalars().all())


async def _vote_counts(session: AsyncSession, comment_id: int) -> tuple[int, int]:
    result = await session.execute(
        select(CommentVote.kind, func.count(CommentVote.id))
        .where(CommentVote.comment_id == comment_id)
        .group_by(CommentVote.kind)
    )
    counts = dict(result.all())
    return counts.get(VOTE_LIKE, 0), counts.get(VOTE_DISLIKE, 0)


async def vote(session: AsyncSession, comment_id: Any, user_id: Any, vote_type: str) -> VoteResult:
    """Toggle a like or dislike.

    Repeating the same vote removes it; voting the other way replaces the
    earlier vote. One row per (comment, user) keeps likes and dislikes
    disjoint.
    """
    if vote_type not in VOTE_TYPES:
        raise InvalidArgumentError("Vote type must be 'like' or 'dislike'.")
    cid = _parse_id(comment_id, "Comment id")
    uid = _parse_id(user_id, "User id")
    await _require_comment(session, cid)

    result = await session.execute(
        select(CommentVote).where(CommentVote.comment_id == cid, CommentVote.user_id == uid)
    )
    current = result.scalar_one_or_none()
    if current is None:
        session.add(CommentVote(comment_id=cid, user_id=uid, kind=vote_type, created_at=datetime.now(timezone.utc)))
        user_vote: str | None = vote_type
    elif current.kind == vote_type:
        await session.delete(current)
        user_vote = None
    else:
        current.kind = vote_type
        user_vote = vote_type

    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("Vote changed concurrently; please retry.") from exc

    likes, dislikes = await _vote_counts(session, cid)
    return VoteResult(comment_id=cid, likes=likes, dislikes=dislikes, user_vote=user_vote)


async def report(session: AsyncSession, comment_id: Any, user_id: Any, reason: str) -> Comment:
    cid = _parse_id(comment_id, "Comment id")
    uid = _parse_id(user_id, "User id")
    text = (reason or "").strip()
    if not text:
        raise InvalidArgumentError("A reason is required.")
    await _require_comment(session, cid)

    already = await session.execute(
        select(CommentReport.id).where(CommentReport.comment_id == cid, CommentReport.user_id == uid)
    )
    if already.first() is not None:
        raise ConflictError("You already reported this comment.")

    session.add(CommentReport(comment_id=cid, user_id=uid, reason=text, created_at=datetime.now(timezone.utc)))
    try:
        await session.flush()
    except IntegrityError as exc:
        raise ConflictError("You already reported this comment.") from exc

    logger.info("Comment %s reported by user %s", cid, uid)
    return await get_comment(session, cid)


async def list_for_moderation(
    session: AsyncSession,
    status: str | None = None,
    has_reports: bool | None = None,
    skip: int = 0,
    limit: int = 20,
) -> list[Comment]:
    stmt = select(Comment)
    if status:
        if status not in COMMENT_STATUSES:
            raise InvalidArgumentError(f"Unknown status: {status}")
        stmt = stmt.where(Comment.status == status)

    reported = select(CommentReport.id).where(CommentReport.comment_id == Comment.id).exists()
    if has_reports is True:
        stmt = stmt.where(reported)
    elif has_reports is False:
        stmt = stmt.where(~reported)

    stmt = (
        stmt.order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset(max(skip, 0))
        .limit(min(max(limit, 1), MAX_MODERATION_PAGE))
    )
    result = await session.execute(_with_children(stmt))
    return list(result.scalars().all())


async def moderate(session: AsyncSession, comment_id: Any, action: str, admin_id: Any) -> Comment | None:
    """Approve, reject or delete a comment. Returns None once deleted."""
    if action not in MODERATION_ACTIONS:
        raise InvalidArgumentError("Action must be one of approve, reject, delete.")
    cid = _parse_id(comment_id, "Comment id")
    aid = _parse_id(admin_id, "Admin id")
    comment = await _require_comment(session, cid)

    if action == "delete":
        await session.delete(comment)
        await session.flush()
        logger.info("Admin %s deleted comment %s", aid, cid)
        return None

    comment.status = STATUS_APPROVED if action == "approve" else STATUS_REJECTED
    comment.moderated_by = aid
    comment.moderated_at = datetime.now(timezone.utc)
    await session.flush()
    logger.info("Admin %s set comment %s to %s", aid, cid, comment.status)
    return await get_comment(session, cid)


async def trending(
    session: AsyncSession,
    trend_type: str = "comments",
    period: str = "week",
    limit: int = 10,
    now: datetime | None = None,
) -> list[TrendingEntry]:
    """Rank incidents by approved comment activity inside a time window."""
    if trend_type not in TREND_TYPES:
        raise InvalidArgumentError("Type must be one of comments, likes, dislikes.")
    if period not in TREND_PERIOD_DAYS:
        raise InvalidArgumentError("Period must be one of day, week, month, all.")
    if limit is None or limit <= 0:
        raise InvalidArgumentError("Limit must be a positive number.")
    limit = min(limit, MAX_TREND_LIMIT)

    latest = func.max(Comment.created_at).label("latest_at")
    if trend_type == "comments":
        count = func.count(Comment.id).label("total")
        stmt = select(Comment.incident_id, count, latest)
    else:
        kind = VOTE_LIKE if trend_type == "likes" else VOTE_DISLIKE
        per_comment = (
            select(CommentVote.comment_id, func.count(CommentVote.id).label("votes"))
            .where(CommentVote.kind == kind)
            .group_by(CommentVote.comment_id)
            .subquery()
        )
        count = func.coalesce(func.sum(per_comment.c.votes), 0).label("total")
        stmt = select(Comment.incident_id, count, latest).outerjoin(
            per_comment, per_comment.c.comment_id == Comment.id
        )

    stmt = stmt.where(Comment.status == STATUS_APPROVED)
    days = TREND_PERIOD_DAYS[period]
    if days is not None:
        stmt = stmt.where(Comment.created_at >= window_start(days, now))

    stmt = (
        stmt.group_by(Comment.incident_id)
        .order_by(count.desc(), latest.desc(), Comment.incident_id)
        .limit(limit)
    )
    result = await session.execute(stmt)
    return [
        TrendingEntry(incident_id=row.incident_id, count=int(row.total), latest_comment=as_utc(row.latest_at))
        for row in result.all()
    ]
