"""Typed failures raised by the store and ingestion layers.

Each error carries the HTTP status the route layer answers with, so routes can
translate any of them with a single ``except NeighborWatchError`` clause.
"""
from __future__ import annotations


class NeighborWatchError(RuntimeError):
    """Base class for failures surfaced to API callers."""

    status_code = 400


class InvalidArgumentError(NeighborWatchError):
    """Raised for missing or malformed input."""

    status_code = 400


class UnauthorizedError(NeighborWatchError):
    """Raised when an action needs a signed-in user."""

    status_code = 401


class ForbiddenError(UnauthorizedError):
    """Raised when a signed-in user lacks the required role."""

    status_code = 403


class NotFoundError(NeighborWatchError):
    """Raised when a comment, incident or user does not exist."""

    status_code = 404


class ConflictError(NeighborWatchError):
    """Raised when a write collides with existing state."""

    status_code = 409


class UpstreamError(NeighborWatchError):
    """Raised when the open data API times out or answers with an error."""

    status_code = 502
