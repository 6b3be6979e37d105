"""
System trace middleware.

Emits two structured log lines per HTTP request:

    Executing HTTP request: {"requestId": ..., "method": ..., "uri": ...}
    Executed HTTP request: {"requestId": ..., "method": ..., "uri": ...,
                            "identities": [...], "status": ..., "duration": ...}

The request id comes from the ``x-request-id`` header (or a new uuid4)
and is stored as the logging trace id for the duration of the request.
Identities are whatever the key authorization dependency recorded on
``request.state.identities``. Query strings are never logged, since they
may carry a ``code`` key.
"""

import json
import math
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hostsecrets.core.logging import logger
from hostsecrets.core.trace_context import trace_id_context

REQUEST_ID_HEADER = "x-request-id"


class SystemTraceMiddleware(BaseHTTPMiddleware):
    """Logs executing/executed traces and propagates the request id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = trace_id_context.set(request_id)

        details = {
            "requestId": request_id,
            "method": request.method,
            "uri": request.url.path,
        }
        logger.info(f"Executing HTTP request: {json.dumps(details)}")

        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            details["identities"] = getattr(request.state, "identities", [])
            details["status"] = response.status_code
            details["duration"] = math.ceil((time.perf_counter() - start) * 1000)
            logger.info(f"Executed HTTP request: {json.dumps(details)}")

            return response

        except Exception:
            logger.exception(
                f"HTTP request failed: {request.method} {request.url.path}"
            )
            raise

        finally:
            trace_id_context.reset(token)
