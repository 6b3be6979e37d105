"""
Health check endpoints.

Reports service status and the capabilities of the configured secret store.
"""

from fastapi import APIRouter

from hostsecrets import __version__
from hostsecrets.api.v1.health.models import HealthResponse
from hostsecrets.di import SecretManagerDep

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(manager: SecretManagerDep) -> HealthResponse:
    """
    Health check endpoint.

    Returns:
        Service status, version and secret store capabilities
    """
    repository = manager.repository
    return HealthResponse(
        status="ok",
        version=__version__,
        secrets_store=repository.store.name,
        encryption_supported=repository.is_encryption_supported,
    )
