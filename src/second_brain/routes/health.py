"""
Liveness endpoint.

`GET /health` answers 200 while the process is up. With the MongoDB backend it also
pings the database and answers 503 when the ping fails.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from second_brain.config import settings
from second_brain.database import db_manager

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    if settings.STORAGE_BACKEND == "memory":
        database = "not_used"
    else:
        database = "healthy" if await db_manager.health_check() else "unhealthy"

    healthy = database != "unhealthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "database": database,
            "storage_backend": settings.STORAGE_BACKEND,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
