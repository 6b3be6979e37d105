"""
Secret manager used by the host authorization layer.

Wraps a SecretsRepository with:
- a per-scope in-process cache, invalidated by the sentinel notifier
- key management (add, update, delete) with generated values
- resolution of a presented key to an authorization level

A cached entry is reused only while the scope's sentinel marker is older
than the moment the entry was fetched; any newer or equal marker means
another instance (or this one) wrote since, and the scope is re-read.
"""

import asyncio
import secrets
from datetime import UTC, datetime

from loguru import logger

from hostsecrets.infrastructure.errors import (
    InvalidArgumentError,
    SecretSetNotFoundError,
    WriteNotSupportedError,
)
from hostsecrets.infrastructure.repositories import SecretsRepository
from hostsecrets.infrastructure.sentinel import SentinelNotifier
from hostsecrets.models.secrets import (
    MASTER_KEY_NAME,
    AuthorizationLevel,
    FunctionSecrets,
    HostSecrets,
    Key,
    KeyCategory,
    ScriptSecrets,
    ScriptSecretsType,
)

# 40 random bytes, URL-safe base64
SECRET_BYTES = 40

CacheKey = tuple[ScriptSecretsType, str | None]


def generate_secret() -> str:
    """Generate a new random key value."""
    return secrets.token_urlsafe(SECRET_BYTES)


def _matches(candidate: Key | None, presented: str) -> bool:
    return candidate is not None and secrets.compare_digest(
        candidate.value.encode("utf-8"), presented.encode("utf-8")
    )


class SecretManager:
    """
    Cached, sentinel-validated access to host and function secrets.

    Attributes:
        repository: Underlying secrets repository
        sentinel: Notifier used to detect writes by other instances
    """

    def __init__(self, repository: SecretsRepository, sentinel: SentinelNotifier):
        self.repository = repository
        self.sentinel = sentinel
        self._cache: dict[CacheKey, tuple[ScriptSecrets, datetime]] = {}
        self._locks: dict[CacheKey, asyncio.Lock] = {}

    def _cache_key(
        self, secrets_type: ScriptSecretsType, function_name: str | None
    ) -> CacheKey:
        if secrets_type is ScriptSecretsType.HOST:
            return (secrets_type, None)
        return (secrets_type, function_name)

    def _lock(self, cache_key: CacheKey) -> asyncio.Lock:
        return self._locks.setdefault(cache_key, asyncio.Lock())

    def clear_cache(self) -> None:
        self._cache.clear()

    async def _get(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None,
        cancel_event: asyncio.Event | None = None,
    ) -> ScriptSecrets:
        cache_key = self._cache_key(secrets_type, function_name)
        cached = self._cache.get(cache_key)
        if cached is not None:
            value, fetched_at = cached
            if not await self.sentinel.is_stale(secrets_type, function_name, fetched_at):
                return value
            logger.debug(f"Secrets for {cache_key} changed, reloading")

        # Taken before the read: a write racing with it leaves the entry stale
        fetched_at = datetime.now(UTC)
        try:
            value = await self.repository.read(
                secrets_type, function_name, cancel_event=cancel_event
            )
        except SecretSetNotFoundError:
            logger.info(f"No secrets provisioned yet for {cache_key}")
            value = (
                HostSecrets()
                if secrets_type is ScriptSecretsType.HOST
                else FunctionSecrets()
            )

        if (
            secrets_type is ScriptSecretsType.HOST
            and value.master_key is None
            and self.repository.store.write_semantics != "read-only"
        ):
            value = await self._bootstrap_master_key(value, cancel_event)

        self._cache[cache_key] = (value, fetched_at)
        return value

    async def _bootstrap_master_key(
        self, current: HostSecrets, cancel_event: asyncio.Event | None
    ) -> HostSecrets:
        """Generate and store the master key of a host that has none."""
        updated = current.model_copy(
            update={"master_key": Key(name=MASTER_KEY_NAME, value=generate_secret())}
        )
        await self.repository.write(
            ScriptSecretsType.HOST, None, updated, cancel_event=cancel_event
        )
        logger.warning("No master key found; generated and stored a new one")
        return updated

    async def get_host_secrets(
        self, cancel_event: asyncio.Event | None = None
    ) -> HostSecrets:
        return await self._get(ScriptSecretsType.HOST, None, cancel_event)

    async def get_function_secrets(
        self, function_name: str, cancel_event: asyncio.Event | None = None
    ) -> FunctionSecrets:
        return await self._get(ScriptSecretsType.FUNCTION, function_name, cancel_event)

    # ------------------------------------------------------------------
    # Key management
    # ------------------------------------------------------------------

    def _require_writable(self) -> None:
        if self.repository.store.write_semantics == "read-only":
            raise WriteNotSupportedError(
                f"Keys of store '{self.repository.store.name}' are provisioned "
                "externally and cannot be changed through the host"
            )

    async def add_or_update_function_key(
        self, function_name: str, key_name: str, value: str | None = None
    ) -> Key:
        """
        Create or replace a key of one function.

        Args:
            function_name: Owning function
            key_name: Key name
            value: Key value (generated when omitted)

        Returns:
            The stored key
        """
        self._require_writable()
        key = Key(name=key_name, value=value or generate_secret())
        cache_key = self._cache_key(ScriptSecretsType.FUNCTION, function_name)

        async with self._lock(cache_key):
            current = await self.get_function_secrets(function_name)
            keys = [k for k in current.keys if k.name != key_name] + [key]
            await self.repository.write(
                ScriptSecretsType.FUNCTION, function_name, FunctionSecrets(keys=keys)
            )
            self._cache.pop(cache_key, None)

        logger.info(f"Stored key '{key_name}' for function '{function_name}'")
        return key

    async def delete_function_key(self, function_name: str, key_name: str) -> bool:
        """Delete a function key. Returns False if it did not exist."""
        self._require_writable()
        cache_key = self._cache_key(ScriptSecretsType.FUNCTION, function_name)

        async with self._lock(cache_key):
            current = await self.get_function_secrets(function_name)
            if current.get_key(key_name) is None:
                return False
            keys = [k for k in current.keys if k.name != key_name]
            await self.repository.write(
                ScriptSecretsType.FUNCTION, function_name, FunctionSecrets(keys=keys)
            )
            self._cache.pop(cache_key, None)

        logger.info(f"Deleted key '{key_name}' of function '{function_name}'")
        return True

    async def add_or_update_host_key(
        self, category: KeyCategory, key_name: str, value: str | None = None
    ) -> Key:
        """
        Create or replace a host-level key.

        Args:
            category: MASTER, HOST_FUNCTION or SYSTEM
            key_name: Key name (ignored for the master key)
            value: Key value (generated when omitted)
        """
        if category is KeyCategory.FUNCTION:
            raise InvalidArgumentError("Use add_or_update_function_key for function keys")
        self._require_writable()

        if category is KeyCategory.MASTER:
            key_name = MASTER_KEY_NAME
        key = Key(name=key_name, value=value or generate_secret())
        cache_key = self._cache_key(ScriptSecretsType.HOST, None)

        async with self._lock(cache_key):
            current = await self.get_host_secrets()
            updated = self._replace_host_key(current, category, key)
            await self.repository.write(ScriptSecretsType.HOST, None, updated)
            self._cache.pop(cache_key, None)

        logger.info(f"Stored host {category.value} key '{key_name}'")
        return key

    async def delete_host_key(self, category: KeyCategory, key_name: str) -> bool:
        """Delete a host function or system key. The master key cannot be deleted."""
        if category not in (KeyCategory.HOST_FUNCTION, KeyCategory.SYSTEM):
            raise InvalidArgumentError(f"Cannot delete host {category.value} key")
        self._require_writable()
        cache_key = self._cache_key(ScriptSecretsType.HOST, None)

        async with self._lock(cache_key):
            current = await self.get_host_secrets()
            collection = (
                current.function_keys
                if category is KeyCategory.HOST_FUNCTION
                else current.system_keys
            )
            if not any(k.name == key_name for k in collection):
                return False
            remaining = [k for k in collection if k.name != key_name]
            if category is KeyCategory.HOST_FUNCTION:
                updated = current.model_copy(update={"function_keys": remaining})
            else:
                updated = current.model_copy(update={"system_keys": remaining})
            await self.repository.write(ScriptSecretsType.HOST, None, updated)
            self._cache.pop(cache_key, None)

        logger.info(f"Deleted host {category.value} key '{key_name}'")
        return True

    @staticmethod
    def _replace_host_key(
        current: HostSecrets, category: KeyCategory, key: Key
    ) -> HostSecrets:
        if category is KeyCategory.MASTER:
            return current.model_copy(update={"master_key": key})
        if category is KeyCategory.HOST_FUNCTION:
            keys = [k for k in current.function_keys if k.name != key.name] + [key]
            return current.model_copy(update={"function_keys": keys})
        keys = [k for k in current.system_keys if k.name != key.name] + [key]
        return current.model_copy(update={"system_keys": keys})

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    async def get_authorization_level(
        self, key_value: str | None, function_name: str | None = None
    ) -> AuthorizationLevel:
        """
        Resolve the access level granted by a presented key.

        master key -> ADMIN, system key -> SYSTEM, host function key or
        a key of ``function_name`` -> FUNCTION, anything else -> ANONYMOUS.
        """
        if not key_value:
            return AuthorizationLevel.ANONYMOUS

        host = await self.get_host_secrets()
        if _matches(host.master_key, key_value):
            return AuthorizationLevel.ADMIN
        if any(_matches(k, key_value) for k in host.system_keys):
            return AuthorizationLevel.SYSTEM
        if any(_matches(k, key_value) for k in host.function_keys):
            return AuthorizationLevel.FUNCTION

        if function_name:
            function = await self.get_function_secrets(function_name)
            if any(_matches(k, key_value) for k in function.keys):
                return AuthorizationLevel.FUNCTION

        return AuthorizationLevel.ANONYMOUS
