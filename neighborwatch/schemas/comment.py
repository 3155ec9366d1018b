"""Pydantic schemas for comments, votes, reports, moderation and trends."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from neighborwatch.schemas.incident import IncidentRead


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)


class ReportRead(BaseModel):
    user_id: int
    reason: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentRead(BaseModel):
    id: int
    incident_id: str
    user_id: int
    username: str
    content: str
    status: str
    created_at: datetime
    likes: list[int] = []
    dislikes: list[int] = []

    model_config = ConfigDict(from_attributes=True)


class CommentModerationRead(CommentRead):
    moderated_by: int | None = None
    moderated_at: datetime | None = None
    reports: list[ReportRead] = []


class VoteRequest(BaseModel):
    type: str = Field(..., description="like or dislike")


class VoteResponse(BaseModel):
    comment_id: int
    likes: int
    dislikes: int
    user_vote: Literal["like", "dislike"] | None = None


class ReportRequest(BaseModel):
    reason: str = Field(..., max_length=500)


class ModerationRequest(BaseModel):
    action: str = Field(..., description="approve, reject or delete")


class ModerationResponse(BaseModel):
    id: int
    action: str
    status: str | None = None


class TrendingItem(BaseModel):
    incident: IncidentRead
    count: int
    latest_comment: datetime
