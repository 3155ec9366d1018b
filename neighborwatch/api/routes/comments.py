"""Comment voting, reporting and trending endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.dependencies import get_current_user, get_db
from neighborwatch.models.user import User
from neighborwatch.schemas.comment import CommentRead, ReportRequest, TrendingItem, VoteRequest, VoteResponse
from neighborwatch.schemas.incident import IncidentRead
from neighborwatch.services import comments as comment_service
from neighborwatch.services import incidents as incident_service
from neighborwatch.services.errors import NeighborWatchError

router = APIRouter(tags=["comments"])


@router.post("/comments/{comment_id}/vote", response_model=VoteResponse)
async def vote_on_comment(
    comment_id: str,
    payload: VoteRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> VoteResponse:
    try:
        result = await comment_service.vote(session, comment_id, current_user.id, payload.type)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()
    return VoteResponse(
        comment_id=result.comment_id,
        likes=result.likes,
        dislikes=result.dislikes,
        user_vote=result.user_vote,
    )


@router.post("/comments/{comment_id}/report", response_model=CommentRead)
async def report_comment(
    comment_id: str,
    payload: ReportRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentRead:
    try:
        comment = await comment_service.report(session, comment_id, current_user.id, payload.reason)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()
    return CommentRead.model_validate(comment)


@router.get("/trending", response_model=list[TrendingItem])
async def trending_incidents(
    trend_type: str = Query(default="comments", alias="type"),
    period: str = Query(default="week"),
    limit: int = Query(default=10),
    session: AsyncSession = Depends(get_db),
) -> list[TrendingItem]:
    """Most discussed, liked or disliked incidents; ids that no longer resolve are dropped."""
    try:
        entries = await comment_service.trending(session, trend_type=trend_type, period=period, limit=limit)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    incidents = await incident_service.get_incidents_by_ids(session, [entry.incident_id for entry in entries])
    return [
        TrendingItem(
            incident=IncidentRead.model_validate(incidents[entry.incident_id]),
            count=entry.count,
            latest_comment=entry.latest_comment,
        )
        for entry in entries
        if entry.incident_id in incidents
    ]
