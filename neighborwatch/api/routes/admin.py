"""Administrator endpoints for moderation and ingestion."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.dependencies import get_db, get_open_data_client, require_admin
from neighborwatch.models.user import User
from neighborwatch.schemas.comment import CommentModerationRead, ModerationRequest, ModerationResponse
from neighborwatch.schemas.incident import IngestRequest, IngestResponse
from neighborwatch.services import comments as comment_service
from neighborwatch.services.errors import NeighborWatchError
from neighborwatch.services.incidents import normalize_zip
from neighborwatch.services.ingestion import ingest
from neighborwatch.services.open_data import IncidentQuery, OpenDataClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/comments", response_model=list[CommentModerationRead])
async def list_comments_for_moderation(
    status: str | None = Query(default=None),
    has_reports: bool | None = Query(default=None),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_db),
    _: User = Depends(require_admin),
) -> list[CommentModerationRead]:
    try:
        comments = await comment_service.list_for_moderation(
            session, status=status, has_reports=has_reports, skip=skip, limit=limit
        )
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return [CommentModerationRead.model_validate(comment) for comment in comments]


@router.post("/comments/{comment_id}/moderate", response_model=ModerationResponse)
async def moderate_comment(
    comment_id: str,
    payload: ModerationRequest,
    session: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ModerationResponse:
    try:
        comment = await comment_service.moderate(session, comment_id, payload.action, admin.id)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()
    if comment is None:
        return ModerationResponse(id=int(comment_id), action=payload.action, status=None)
    return ModerationResponse(id=comment.id, action=payload.action, status=comment.status)


@router.post("/ingest", response_model=IngestResponse)
async def trigger_ingest(
    payload: IngestRequest,
    session: AsyncSession = Depends(get_db),
    client: OpenDataClient = Depends(get_open_data_client),
    admin: User = Depends(require_admin),
) -> IngestResponse:
    query = IncidentQuery(
        zip=normalize_zip(payload.zip),
        days=payload.days,
        limit=payload.limit,
        status=payload.status,
        complaint_type=payload.complaint_type,
        agency=payload.agency,
    )
    logger.info("Admin %s triggered ingestion for zip %s", admin.username, query.zip or "*")
    try:
        result = await ingest(session, client, query)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()
    return IngestResponse(fetched=result.fetched, stored=result.stored, inserted=result.inserted)
