"""API router aggregator."""
from fastapi import APIRouter

from neighborwatch.api.routes import admin, auth, comments, incidents

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(incidents.router)
api_router.include_router(comments.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]
