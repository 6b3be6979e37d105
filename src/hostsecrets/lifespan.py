"""
Application lifecycle management.

Handles startup and shutdown events for the FastAPI application.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from hostsecrets.di import get_secret_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the secret manager on startup so store misconfiguration fails
    fast, and drops cached secrets on shutdown.

    Args:
        app: FastAPI application instance
    """
    logger.info("Starting function host secrets service...")
    logger.info(f"Application version: {app.version}")

    manager = app.dependency_overrides.get(get_secret_manager, get_secret_manager)()
    repository = manager.repository
    logger.info(
        f"Secret store: {repository.store.name} "
        f"(layout={repository.layout.value}, "
        f"encryption={repository.is_encryption_supported}, "
        f"snapshots={repository.store.supports_snapshots}, "
        f"purge={repository.purge_allowed})"
    )

    yield

    logger.info("Shutting down function host secrets service...")
    manager.clear_cache()
