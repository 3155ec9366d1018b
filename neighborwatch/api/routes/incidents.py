"""Incident feed, detail and comment thread endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from neighborwatch.core.config import Settings
from neighborwatch.core.dependencies import get_app_settings, get_current_user, get_db, get_open_data_client
from neighborwatch.models.user import User
from neighborwatch.schemas.comment import CommentCreate, CommentRead
from neighborwatch.schemas.incident import FeedPage, IncidentRead, SortOrder
from neighborwatch.services import comments as comment_service
from neighborwatch.services import incidents as incident_service
from neighborwatch.services.errors import NeighborWatchError
from neighborwatch.services.incidents import IncidentFilters, normalize_zip
from neighborwatch.services.ingestion import load_feed_page
from neighborwatch.services.open_data import OpenDataClient

router = APIRouter(prefix="/incidents", tags=["incidents"])


@router.get("", response_model=FeedPage)
async def incident_feed(
    zip: str = Query(..., pattern=r"^\d{3,5}$"),
    page: int = Query(default=1, ge=1),
    status_filter: str | None = Query(default=None, alias="status", max_length=32),
    complaint_type: str | None = Query(default=None, max_length=128),
    agency: str | None = Query(default=None, max_length=32),
    sort: SortOrder = "newest",
    session: AsyncSession = Depends(get_db),
    client: OpenDataClient = Depends(get_open_data_client),
    settings: Settings = Depends(get_app_settings),
) -> FeedPage:
    """Cached incidents for a ZIP, backfilled from NYC Open Data when the cache is empty."""
    filters = IncidentFilters(
        zip=normalize_zip(zip),
        status=status_filter or None,
        complaint_type=complaint_type or None,
        agency=agency or None,
        sort=sort,
    )
    page_size = settings.feed_page_size
    try:
        result = await load_feed_page(session, client, filters, page=page, page_size=page_size)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()

    return FeedPage(
        zip=filters.zip,
        page=page,
        page_size=page_size,
        total=result.total,
        has_more=page * page_size < result.total,
        fetched_from_source=result.fetched_from_source,
        items=[IncidentRead.model_validate(item) for item in result.items],
    )


@router.get("/{open_data_id}", response_model=IncidentRead)
async def get_incident(open_data_id: str, session: AsyncSession = Depends(get_db)) -> IncidentRead:
    incident = await incident_service.get_incident(session, open_data_id)
    if not incident:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")
    return IncidentRead.model_validate(incident)


@router.get("/{open_data_id}/comments", response_model=list[CommentRead])
async def list_incident_comments(open_data_id: str, session: AsyncSession = Depends(get_db)) -> list[CommentRead]:
    comments = await comment_service.list_comments(session, open_data_id)
    return [CommentRead.model_validate(comment) for comment in comments]


@router.post("/{open_data_id}/comments", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def create_incident_comment(
    open_data_id: str,
    payload: CommentCreate,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentRead:
    try:
        comment = await comment_service.create_comment(session, open_data_id, current_user, payload.content)
    except NeighborWatchError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    await session.commit()
    return CommentRead.model_validate(comment)
