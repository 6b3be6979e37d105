"""
Loguru configuration for the host.

Every record carries:
- ``trace_id``: request id set by the system trace middleware ("N/A" outside requests)
- ``scope`` and ``count``: bound by secret operations
  (``logger.bind(scope=..., count=...)``), "-" when unbound

so the default format, and any structured sink, can rely on them.
Standard library loggers (uvicorn, httpx, botocore) are redirected here.
"""

import logging
import sys
from typing import Any

from loguru import logger

from hostsecrets.config import settings
from hostsecrets.core.trace_context import trace_id_context

# Forwarded at WARNING and above only
QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def add_trace_id(record: dict[str, Any]) -> bool:
    """Attach request and secret-scope context to a record."""
    extra = record["extra"]
    extra["trace_id"] = trace_id_context.get() or "N/A"
    extra.setdefault("scope", "-")
    extra.setdefault("count", "-")
    return True


def configure_logger() -> None:
    """Replace the default handler with the configured stderr sink."""
    logger.remove()

    logger.add(
        sink=sys.stderr,
        level=settings.log_level.upper(),
        format=settings.log_format,
        filter=add_trace_id,
        colorize=True,
        serialize=False,
        backtrace=True,
        diagnose=False,
        enqueue=settings.logger_enqueue,
    )


configure_logger()


class InterceptHandler(logging.Handler):
    """Redirects standard logging records to loguru, keeping their level."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def intercept_standard_logging() -> None:
    """
    Route uvicorn, httpx and AWS SDK logging through loguru.

    Call once from an entry point (``main``, ``lambda_main``).
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO)

    for logger_name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "fastapi",
        *QUIET_LOGGERS,
    ]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


__all__ = ["logger", "InterceptHandler", "configure_logger", "intercept_standard_logging"]
