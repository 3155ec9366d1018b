"""Database models for incident comments, their votes and their reports."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from neighborwatch.db.base import Base, utcnow

STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
COMMENT_STATUSES = (STATUS_APPROVED, STATUS_REJECTED)

VOTE_LIKE = "like"
VOTE_DISLIKE = "dislike"
VOTE_TYPES = (VOTE_LIKE, VOTE_DISLIKE)


class Comment(Base):
    """A user comment attached to an incident by its open data id."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    incident_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)  # Incident.open_data_id, not enforced
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default=STATUS_APPROVED, index=True)
    moderated_by: Mapped[int | None] = mapped_column(Integer, default=None)
    moderated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    votes: Mapped[list["CommentVote"]] = relationship(
        "CommentVote", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True
    )
    reports: Mapped[list["CommentReport"]] = relationship(
        "CommentReport",
        back_populates="comment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CommentReport.created_at",
    )

    @property
    def likes(self) -> list[int]:
        return [vote.user_id for vote in self.votes if vote.kind == VOTE_LIKE]

    @property
    def dislikes(self) -> list[int]:
        return [vote.user_id for vote in self.votes if vote.kind == VOTE_DISLIKE]


class CommentVote(Base):
    """One user's like or dislike on a comment; at most one row per user."""

    __tablename__ = "comment_votes"

    id: Mapped[int] = mapped_column(primary_key=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # like, dislike
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    comment: Mapped[Comment] = relationship("Comment", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_vote_user"),
    )


class CommentReport(Base):
    """A user's report flagging a comment for moderation."""

    __tablename__ = "comment_reports"

    id: Mapped[int] = mapped_column(primary_key=True)
    comment_id: Mapped[int] = mapped_column(ForeignKey("comments.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    comment: Mapped[Comment] = relationship("Comment", back_populates="reports")

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", name="uq_comment_report_user"),
    )
