"""Pluggable secrets repository for a multi-tenant function host."""

__version__ = "1.0.0"
