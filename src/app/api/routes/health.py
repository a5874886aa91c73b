"""Health check endpoints."""

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.cache import get_cache_stats
from app.core.config import settings
from app.core.deps import DbSession, Dispatcher

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "app": settings.APP_NAME, "environment": settings.ENVIRONMENT}


@router.get("/health/db")
async def database_health(db: DbSession):
    """Database connectivity check."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "database": str(e)}
    return {"status": "healthy", "database": "connected"}


@router.get("/health/cache")
async def cache_health():
    """
    Price lookup cache status.

    Returns whether the Redis-backed HTTP cache is installed, its backend
    type and size (if available).
    """
    stats = get_cache_stats()
    if stats.get("enabled"):
        return {"status": "healthy", "cache": stats}
    return {"status": "disabled", "cache": stats}


@router.get("/health/recompute")
async def recompute_health(dispatcher: Dispatcher):
    """Number of background recomputations still running."""
    return {"status": "healthy", "pending_recomputations": dispatcher.pending}
