"""Route modules for the NeighborWatch API."""
from . import admin, auth, comments, incidents

__all__ = ["auth", "incidents", "comments", "admin"]
