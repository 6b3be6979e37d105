"""Request trace id context variable, read by the log filter."""

import contextvars

# Set by the system trace middleware for the duration of a request
trace_id_context: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)
