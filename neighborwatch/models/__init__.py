"""SQLAlchemy models exposed for metadata creation and imports."""
from .comment import Comment, CommentReport, CommentVote
from .incident import Incident
from .user import User

__all__ = ["User", "Incident", "Comment", "CommentVote", "CommentReport"]
