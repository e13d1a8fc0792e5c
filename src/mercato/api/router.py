"""Root router: probes, service info and the versioned API."""

from typing import Any

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from mercato import __version__
from mercato.config import Settings
from mercato.core.auth.routes import router as auth_router
from mercato.core.database import Database
from mercato.modules import discover_modules


logger = structlog.get_logger()


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, str]


async def _check_database(database: Database, settings: Settings) -> dict[str, str]:
    """Check the pool and the tenant directory table.

    Readiness needs the directory as well as a connection: without it no
    tenant session can be resolved.
    """
    try:
        async with database.engine.connect() as conn:
            directory = await conn.scalar(
                text(
                    "SELECT 1 FROM information_schema.tables "
                    "WHERE table_schema = :schema AND table_name = 'tenants'"
                ),
                {"schema": settings.shared_schema},
            )
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("readiness_check_failed", check="database", error_type=type(exc).__name__)
        return {"database": "unavailable", "tenant_directory": "unknown"}

    return {
        "database": "ok",
        "tenant_directory": "ok" if directory is not None else "missing",
    }


health_router = APIRouter(tags=["health"])


@health_router.get("/health/live", response_model=HealthResponse, summary="Liveness probe")
async def liveness() -> HealthResponse:
    """200 while the process is serving requests."""
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Checks database connectivity and the tenant directory table.",
)
async def readiness(request: Request) -> JSONResponse:
    checks = await _check_database(request.app.state.database, request.app.state.settings)
    ready = all(value == "ok" for value in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@health_router.get("/info", summary="Service info")
async def info(request: Request) -> dict[str, Any]:
    """Service metadata and the tenant scoping configuration in effect."""
    settings: Settings = request.app.state.settings
    return {
        "app": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "tenancy": {
            "schema_prefix": settings.tenant_schema_prefix,
            "shared_schema": settings.shared_schema,
            "transaction_timeout_seconds": settings.tenant_transaction_timeout,
        },
    }


v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(auth_router)
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(v1_router)
