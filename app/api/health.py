from fastapi import APIRouter
from app.utils.cache import cache_service
from app.database import engine, database_info
from sqlalchemy import text

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check that the database is reachable and report cache status."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection (required)
    - Redis cache (optional; the API works without it)
    """
    checks = {
        "database": False,
        "cache": cache_service.ping(),
        "cache_enabled": cache_service.enabled,
    }

    # Check database
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        checks["database_error"] = str(e)

    return {
        "status": "ready" if checks["database"] else "not_ready",
        "checks": checks,
        "db": database_info(),
    }
