"""
Main FastAPI application entry point.

Run with:
    uvicorn hostsecrets.main:app
"""

from hostsecrets.application import create_app
from hostsecrets.config import get_settings
from hostsecrets.core.logging import intercept_standard_logging

settings = get_settings()

# Configure OpenTelemetry before the app is built (requires the telemetry extra)
if settings.otel_enabled:
    from hostsecrets.core.telemetry import configure_opentelemetry, instrument_app

    configure_opentelemetry()

# Intercept logs from uvicorn and other libraries
intercept_standard_logging()

app = create_app()

if settings.otel_enabled:
    instrument_app(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hostsecrets.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )
