"""FastAPI application factory.

``create_app`` is the composition root: it builds the database, the
tenancy executors, the directory, the resolver and the rate limiter once,
and stores them on ``app.state`` for the request dependencies.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import mercato.models  # noqa: F401
from mercato import __version__
from mercato.api.router import api_router
from mercato.config import Settings, get_settings
from mercato.core.auth import RequestIdMiddleware, SessionLogContextMiddleware
from mercato.core.database import Database
from mercato.core.errors import register_exception_handlers
from mercato.core.logging import RequestLoggingMiddleware, configure_logging
from mercato.core.rate_limit import build_rate_limiter
from mercato.core.tenancy import (
    ScopedTransactionExecutor,
    SharedSchemaExecutor,
    TenantDirectory,
    TenantResolver,
)


logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Closes the rate limiter and disposes the connection pool on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    yield

    logger.info("application_shutdown")
    await app.state.rate_limiter.close()
    await app.state.database.dispose()


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        database: Database to use; defaults to one built from settings

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    database = database or Database.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Schema-per-tenant backend for retail and restaurant businesses",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    shared_executor = SharedSchemaExecutor.from_settings(
        database.session_factory, settings
    )
    directory = TenantDirectory(shared_executor)

    app.state.settings = settings
    app.state.database = database
    app.state.executor = ScopedTransactionExecutor.from_settings(
        database.session_factory, settings
    )
    app.state.shared_executor = shared_executor
    app.state.directory = directory
    app.state.resolver = TenantResolver(directory)
    app.state.rate_limiter = build_rate_limiter(settings)

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Starlette runs the last-added middleware first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SessionLogContextMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)

    return app
