"""
API v1 endpoints.

Route prefix constants for consistent API versioning.
"""

API_V1_PREFIX: str = ""

ADMIN_PREFIX: str = f"{API_V1_PREFIX}/admin"

__all__ = [
    "API_V1_PREFIX",
    "ADMIN_PREFIX",
]
