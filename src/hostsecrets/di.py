"""
Dependency injection container for the host API.

Centralizes FastAPI dependencies using typing.Annotated for clean type
hints throughout the application.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Query, Request, status
from loguru import logger

from hostsecrets.config import Settings, get_settings
from hostsecrets.infrastructure import InfrastructureFactory
from hostsecrets.models.secrets import AuthorizationLevel
from hostsecrets.services.secret_manager import SecretManager

FUNCTIONS_KEY_HEADER = "x-functions-key"
AUTH_LEVEL_SCHEME = "WebJobsAuthLevel"

# ============================================================================
# Settings Dependencies
# ============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings)]
"""Injected Settings instance (cached via lru_cache)."""


# ============================================================================
# Secret Manager Dependencies
# ============================================================================


@lru_cache
def get_secret_manager() -> SecretManager:
    """
    Get the process-wide secret manager (LRU cached).

    The manager owns the per-instance secrets cache, so one instance is
    shared by all requests. Clear with ``get_secret_manager.cache_clear()``.
    """
    factory = InfrastructureFactory.from_settings(get_settings())
    repository = factory.get_secrets_repository()
    return SecretManager(repository, repository.sentinel)


SecretManagerDep = Annotated[SecretManager, Depends(get_secret_manager)]
"""Injected SecretManager."""


# ============================================================================
# Key Authorization Dependencies
# ============================================================================


async def get_request_auth_level(
    request: Request,
    manager: SecretManagerDep,
    functions_key: Annotated[
        str | None, Header(alias=FUNCTIONS_KEY_HEADER)
    ] = None,
    code: Annotated[str | None, Query()] = None,
) -> AuthorizationLevel:
    """
    Resolve the authorization level of the key presented with a request.

    The key is read from the ``x-functions-key`` header, falling back to
    the ``code`` query parameter. The resolved level is recorded on
    ``request.state.identities`` for the system trace.
    """
    function_name = request.path_params.get("function_name")
    level = await manager.get_authorization_level(functions_key or code, function_name)

    request.state.identities = [{"type": AUTH_LEVEL_SCHEME, "level": level.value}]
    return level


AuthLevelDep = Annotated[AuthorizationLevel, Depends(get_request_auth_level)]


def require_admin(level: AuthLevelDep) -> None:
    """
    Reject requests that did not present the master key.

    Raises:
        HTTPException: 401 if the key does not grant admin access
    """
    if level is not AuthorizationLevel.ADMIN:
        logger.warning(f"Admin request rejected (level={level.value})")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Master key required",
        )
