"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool
from redis import Redis

from account_engine import __version__
from account_engine.adapters.ids import SnowflakeGenerator
from account_engine.adapters.repository import run_migrations
from account_engine.api.errors import add_exception_handlers
from account_engine.api.v1 import router as v1_router
from account_engine.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {"name": "auth", "description": "Registration, login, email verification and password reset"},
    {"name": "users", "description": "Profile management and company membership"},
    {"name": "companies", "description": "Company management"},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations
    - Connects the Redis cache client
    - Creates the process-wide Snowflake ID generator
    - Closes pool and Redis client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Acquisition is bounded by timeout; every statement by statement_timeout
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={settings.statement_timeout_ms}"},
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    redis_client = Redis.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
    )

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.redis = redis_client
    app.state.id_generator = SnowflakeGenerator(settings.snowflake_machine_id)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    redis_client.close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="account-engine",
    description="Account lifecycle API - registration, OTP verification, sessions, companies",
    version=__version__,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

add_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails. Redis is reported
    but not required, since the cache is only a read accelerator.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    try:
        request.app.state.redis.ping()
        cache = "healthy"
    except Exception as exc:
        logger.warning("Redis health check failed: %s", exc)
        cache = "unavailable"

    return {"status": "healthy", "cache": cache}
