"""Core cross-cutting concerns: logging and request trace context."""
