"""
Health check endpoints
"""

from fastapi import APIRouter, Depends, Request

from docpilot.api.deps import get_store
from docpilot.repositories.interfaces import Store
from docpilot.utils.datetime import utc_now

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Simple API health check."""
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": request.app.title,
    }


@router.get("/health/db")
async def database_health(store: Store = Depends(get_store)):
    """Storage backend health check."""
    try:
        await store.ping()
    except Exception as exc:  # pragma: no cover - best effort check
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(exc),
            "timestamp": utc_now().isoformat(),
        }

    return {
        "status": "healthy",
        "database": "connected",
        "timestamp": utc_now().isoformat(),
    }
