"""
OpenTelemetry configuration for distributed tracing.

Enabled with OTEL_ENABLED=true (requires the ``telemetry`` extra). Adds:
- FastAPI request spans (health checks excluded)
- HTTPX client spans, covering Kubernetes API calls
- trace context on standard logging records
"""

import logging

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

from hostsecrets import __version__
from hostsecrets.config import settings

logger = logging.getLogger(__name__)


def configure_opentelemetry(
    service_name: str | None = None,
    environment: str | None = None,
) -> TracerProvider:
    """
    Configure the global tracer provider.

    Development environments export spans to the console; every other
    environment exports to the configured OTLP collector.

    Args:
        service_name: Service name (default: from settings)
        environment: Environment name (default: from settings)

    Returns:
        The registered tracer provider
    """
    service_name = service_name or settings.otel_service_name
    environment = environment or settings.environment

    resource = Resource.create(
        attributes={
            "service.name": service_name,
            "service.version": __version__,
            "deployment.environment": environment,
        }
    )
    tracer_provider = TracerProvider(resource=resource)

    if environment in ["development", "dev", "local"]:
        exporter = ConsoleSpanExporter()
    else:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint, insecure=True
        )
    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(tracer_provider)
    logger.info(
        f"OpenTelemetry configured: service={service_name}, environment={environment}"
    )
    return tracer_provider


def instrument_app(app: FastAPI) -> None:
    """Instrument FastAPI, HTTPX and logging."""
    LoggingInstrumentor().instrument(set_logging_format=False)
    HTTPXClientInstrumentor().instrument()
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=trace.get_tracer_provider(),
        excluded_urls="/health",
    )
    logger.info("FastAPI, HTTPX and logging instrumented with OpenTelemetry")


__all__ = ["configure_opentelemetry", "instrument_app"]
