"""
FastAPI application factory.

Creates and configures the FastAPI application with middleware,
routers, and exception handlers.
"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from hostsecrets import __version__
from hostsecrets.config import get_settings
from hostsecrets.core.logging import logger
from hostsecrets.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    secrets_exception_handler,
    validation_exception_handler,
)
from hostsecrets.infrastructure.errors import SecretsError
from hostsecrets.lifespan import lifespan
from hostsecrets.middleware import SystemTraceMiddleware
from hostsecrets.routes import register_routes


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    docs_url = "/docs" if settings.enable_docs else None
    redoc_url = "/redoc" if settings.enable_docs else None
    openapi_url = "/openapi.json" if settings.enable_docs else None

    app = FastAPI(
        title=settings.project_name,
        description="Host and function key management for the function host",
        version=__version__,
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
    )

    # Register exception handlers (RFC 7807 Problem Details)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SecretsError, secrets_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.add_middleware(SystemTraceMiddleware)

    register_routes(app)

    logger.info(f"FastAPI application created (v{__version__})")

    return app
