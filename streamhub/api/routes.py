"""Health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from streamhub.database import health_check as db_health_check

router = APIRouter(prefix="/api")


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format and storage health
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    pool = getattr(request.app.state, "db_pool", None)
    if pool is None:
        health_status["database"] = "not_configured"
    else:
        db_healthy = await db_health_check(pool)
        health_status["database"] = "healthy" if db_healthy else "unhealthy"

    return health_status
