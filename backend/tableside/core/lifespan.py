"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, app_logger as logger
from shared.infrastructure.events import close_redis_pool
from tableside.models import Base
from tableside.repositories import open_persistence
from tableside.seed import seed_demo_tables


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    config_errors = settings.validate_production_config()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error", error=error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(config_errors)}. "
                "Server will not start with insecure configuration."
            )
        logger.warning("Running with insecure defaults (acceptable for development only)")

    logger.info(
        "Starting tableside API",
        port=settings.api_port,
        env=settings.environment,
        persistence=settings.persistence_backend,
    )

    if settings.persistence_backend == "sql":
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")

    if settings.seed_demo_tables:
        store = open_persistence()
        try:
            seed_demo_tables(store)
        finally:
            store.close()

    yield

    logger.info("Shutting down tableside API")
    await close_redis_pool()
