import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from progress_engine.db.base import get_session_factory
from progress_engine.db.redis import get_redis

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness check. Returns 503 while the app is shutting down."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "progress-engine"},
        )
    return {"status": "healthy", "service": "progress-engine"}


@router.get("/ready")
async def readiness_check():
    """Readiness check - verifies the database answers; Redis is optional."""
    checks = {"database": False, "redis": None}

    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))

    client = get_redis()
    if client is not None:
        try:
            await client.ping()
            checks["redis"] = True
        except Exception as e:
            checks["redis"] = False
            logger.error("redis_health_check_failed", error=str(e))

    healthy = checks["database"] and checks["redis"] is not False
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ready" if healthy else "degraded", "checks": checks},
    )
