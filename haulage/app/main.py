"""
FastAPI Application Entry Point.

Haulage dispatch backend: driver activity logging and the broker dashboard.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from haulage.app.core.config import settings
from haulage.app.api.v1.router import router as api_v1_router
from haulage.app.core.observability import ObservabilityMiddleware
from haulage.app.core.redis_client import get_redis, ping_redis
from haulage.app.db.session import engine, Base
from haulage.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from haulage.app.models.user import User  # noqa: F401
from haulage.app.models.audit_log import AuditLog  # noqa: F401
from haulage.app.models.truck import Truck  # noqa: F401
from haulage.app.models.job import Job  # noqa: F401
from haulage.app.models.material import Material  # noqa: F401
from haulage.app.models.location import Location  # noqa: F401
from haulage.app.models.work_day import WorkDay  # noqa: F401
from haulage.app.models.activity import Activity  # noqa: F401
from haulage.app.models.company import Company  # noqa: F401
from haulage.app.models.dispatch import Dispatch, CompanyDispatchAssignment  # noqa: F401

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)
logger = logging.getLogger("haulage")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fleet dispatch and activity tracking for aggregate hauling",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(redis=Depends(get_redis)):
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis(redis) else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Haulage Dispatch API",
        "docs": "/docs",
        "health": "/health",
    }
