"""
Key administration endpoints.

All endpoints require the host master key, presented in the
``x-functions-key`` header or the ``code`` query parameter.

Host keys:
    GET/PUT/DELETE /admin/host/keys[/{name}]        host function keys
    GET/PUT/DELETE /admin/host/systemkeys[/{name}]  system keys
    PUT /admin/host/keys/_master                    rotates the master key
Function keys:
    GET/PUT/DELETE /admin/functions/{function_name}/keys[/{name}]
Maintenance:
    POST /admin/host/purge
"""

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from hostsecrets.api.v1.admin.models import (
    KeyListResponse,
    KeyResponse,
    KeyUpdateRequest,
    PurgeRequest,
    PurgeResponse,
)
from hostsecrets.di import SecretManagerDep, require_admin
from hostsecrets.models.secrets import KeyCategory

MASTER_KEY_ROUTE_NAME = "_master"

router = APIRouter(dependencies=[Depends(require_admin)])


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# ============================================================================
# Host keys
# ============================================================================


@router.get("/host/keys", response_model=KeyListResponse)
async def list_host_keys(manager: SecretManagerDep) -> KeyListResponse:
    """List host function keys."""
    host = await manager.get_host_secrets()
    return KeyListResponse.from_keys(host.function_keys)


@router.put("/host/keys/{name}", response_model=KeyResponse)
async def put_host_key(
    name: str,
    manager: SecretManagerDep,
    body: KeyUpdateRequest | None = None,
) -> KeyResponse:
    """Create or update a host function key, or rotate the master key."""
    value = body.value if body else None
    if name == MASTER_KEY_ROUTE_NAME:
        key = await manager.add_or_update_host_key(KeyCategory.MASTER, name, value)
    else:
        key = await manager.add_or_update_host_key(
            KeyCategory.HOST_FUNCTION, name, value
        )
    return KeyResponse.from_key(key)


@router.delete("/host/keys/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_host_key(name: str, manager: SecretManagerDep) -> None:
    """Delete a host function key."""
    if not await manager.delete_host_key(KeyCategory.HOST_FUNCTION, name):
        raise _not_found(f"Host key '{name}' not found")


@router.get("/host/systemkeys", response_model=KeyListResponse)
async def list_system_keys(manager: SecretManagerDep) -> KeyListResponse:
    """List host system keys."""
    host = await manager.get_host_secrets()
    return KeyListResponse.from_keys(host.system_keys)


@router.put("/host/systemkeys/{name}", response_model=KeyResponse)
async def put_system_key(
    name: str,
    manager: SecretManagerDep,
    body: KeyUpdateRequest | None = None,
) -> KeyResponse:
    """Create or update a system key."""
    key = await manager.add_or_update_host_key(
        KeyCategory.SYSTEM, name, body.value if body else None
    )
    return KeyResponse.from_key(key)


@router.delete("/host/systemkeys/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_system_key(name: str, manager: SecretManagerDep) -> None:
    """Delete a system key."""
    if not await manager.delete_host_key(KeyCategory.SYSTEM, name):
        raise _not_found(f"System key '{name}' not found")


# ============================================================================
# Function keys
# ============================================================================


@router.get("/functions/{function_name}/keys", response_model=KeyListResponse)
async def list_function_keys(
    function_name: str, manager: SecretManagerDep
) -> KeyListResponse:
    """List the keys of one function."""
    secrets = await manager.get_function_secrets(function_name)
    return KeyListResponse.from_keys(secrets.keys)


@router.put("/functions/{function_name}/keys/{name}", response_model=KeyResponse)
async def put_function_key(
    function_name: str,
    name: str,
    manager: SecretManagerDep,
    body: KeyUpdateRequest | None = None,
) -> KeyResponse:
    """Create or update a function key."""
    key = await manager.add_or_update_function_key(
        function_name, name, body.value if body else None
    )
    return KeyResponse.from_key(key)


@router.delete(
    "/functions/{function_name}/keys/{name}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_function_key(
    function_name: str, name: str, manager: SecretManagerDep
) -> None:
    """Delete a function key."""
    if not await manager.delete_function_key(function_name, name):
        raise _not_found(f"Key '{name}' of function '{function_name}' not found")


# ============================================================================
# Maintenance
# ============================================================================


@router.post("/host/purge", response_model=PurgeResponse)
async def purge_stale_secrets(
    request: PurgeRequest,
    manager: SecretManagerDep,
) -> PurgeResponse:
    """Remove secrets of functions that no longer exist."""
    purged = await manager.repository.purge_stale(request.functions)
    if purged:
        manager.clear_cache()
    logger.info(f"Purge requested for {len(request.functions)} live functions")
    return PurgeResponse(purged=purged)
