"""Progress Engine: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# CRITICAL ORDER: configure_structlog MUST be called before all other package imports
# to avoid the structlog cache pitfall (structlog caches the processor chain on first use).
from progress_engine.core.logging import configure_structlog
from progress_engine.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else _early_settings.log_level,
    json_logs=_early_settings.json_logs and not _early_settings.debug,
    service=_early_settings.app_name,
    sql_log_level=_early_settings.sql_log_level,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from progress_engine.api.routes import api_router
from progress_engine.core.config import get_settings
from progress_engine.core.exceptions import (
    ConcurrencyConflictError,
    InvalidProgressError,
    ManualWeightingError,
    NodeNotFoundError,
    NoPeriodDefinedError,
    ProgressEngineError,
)
from progress_engine.db import close_db, close_redis, init_db, init_redis
from progress_engine.middleware.correlation import get_correlation_id, setup_correlation_middleware

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: dict[type[ProgressEngineError], int] = {
    NodeNotFoundError: 404,
    InvalidProgressError: 422,
    NoPeriodDefinedError: 422,
    ManualWeightingError: 409,
    ConcurrencyConflictError: 409,
}


def status_code_for(exc: ProgressEngineError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_type]
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    # Without Redis, writes are still guarded by the mission version check
    if settings.mission_lock_enabled:
        try:
            await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            await close_redis()
            logger.warning("mission_lock_unavailable", error=str(e), error_type=type(e).__name__)

    yield

    logger.info("shutdown_begin")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


async def engine_error_handler(request: Request, exc: ProgressEngineError) -> JSONResponse:
    """Map engine errors to 4xx with a debug_id for log lookup."""
    debug_id = str(uuid.uuid4())
    status_code = status_code_for(exc)

    logger.warning(
        "engine_error",
        status_code=status_code,
        error_type=type(exc).__name__,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=str(exc),
    )

    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__, "debug_id": debug_id},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unhandled errors with traceback, return a generic 500."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Weighted progress rollup and weight rebalancing for Mission hierarchies",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_correlation_middleware(app)

    app.exception_handler(ProgressEngineError)(engine_error_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "progress_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
