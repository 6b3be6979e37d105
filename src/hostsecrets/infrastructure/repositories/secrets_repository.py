"""
Secrets repository used by the host authorization layer.

Composes a backing SecretStore, the key-name codec and the sentinel
notifier into typed read/write/purge/snapshot operations:
- read: fetch a secret set and decode it into HostSecrets/FunctionSecrets
- write: encode, store, then touch the scope sentinel
- purge_stale: drop secrets of functions that no longer exist
- write_snapshot/list_snapshots: historical copies (store permitting)

The repository keeps no cache; every read goes to the store.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from enum import Enum
from typing import TypeVar

from loguru import logger

from hostsecrets.infrastructure import codec
from hostsecrets.infrastructure.errors import (
    DecodeSkippedError,
    InvalidArgumentError,
    OperationCancelledError,
    SecretSetNotFoundError,
    SnapshotNotSupportedError,
    WriteNotSupportedError,
)
from hostsecrets.infrastructure.repositories.secret_store import SecretStore
from hostsecrets.infrastructure.sentinel import SentinelNotifier
from hostsecrets.models.secrets import (
    DecodedKey,
    FunctionSecrets,
    HostSecrets,
    KeyCategory,
    ScriptSecrets,
    ScriptSecretsType,
)

T = TypeVar("T")

DEFAULT_HOST_SET_NAME = "host"


class SecretSetLayout(str, Enum):
    """How scopes map onto secret sets in the backing store."""

    # One set holds host keys and every function's keys
    SHARED = "shared"
    # Host keys in one set, one set per function
    PER_SCOPE = "per_scope"


async def run_cancellable(
    operation: Awaitable[T], cancel_event: asyncio.Event | None = None
) -> T:
    """
    Await a store call, aborting it as soon as ``cancel_event`` is set.

    Raises:
        OperationCancelledError: If the event fires first (no retry)
    """
    if cancel_event is None:
        return await operation

    if cancel_event.is_set():
        if asyncio.iscoroutine(operation):
            operation.close()
        raise OperationCancelledError("Operation cancelled before it started")

    task = asyncio.ensure_future(operation)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {task, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    raise OperationCancelledError("Operation cancelled while waiting for the store")


class SecretsRepository:
    """
    Typed secrets repository over a pluggable backing store.

    Attributes:
        store: Backing secret store
        sentinel: Cross-instance change notifier
        layout: Secret set layout of the store
        secret_set_name: Set holding all keys (SHARED layout only)
        host_set_name: Set holding host keys (PER_SCOPE layout only)
        purge_enabled: Purge policy override (None = store default)
    """

    def __init__(
        self,
        store: SecretStore,
        sentinel: SentinelNotifier,
        *,
        layout: SecretSetLayout = SecretSetLayout.PER_SCOPE,
        secret_set_name: str | None = None,
        host_set_name: str = DEFAULT_HOST_SET_NAME,
        purge_enabled: bool | None = None,
    ):
        if layout is SecretSetLayout.SHARED and not secret_set_name:
            raise InvalidArgumentError("secret_set_name is required for shared layout")
        if not host_set_name:
            raise InvalidArgumentError("host_set_name must not be empty")

        self.store = store
        self.sentinel = sentinel
        self.layout = layout
        self.secret_set_name = secret_set_name
        self.host_set_name = host_set_name
        self.purge_enabled = purge_enabled

        logger.info(
            f"Initialized SecretsRepository with store={store.name}, "
            f"layout={layout.value}, write_semantics={store.write_semantics}"
        )

    @property
    def is_encryption_supported(self) -> bool:
        """Whether the store encrypts values at rest."""
        return self.store.supports_encryption

    # ------------------------------------------------------------------
    # Read / write
    # ------------------------------------------------------------------

    async def read(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ScriptSecrets:
        """
        Read and decode the secrets of one scope.

        Undecodable pairs are logged and skipped.

        Raises:
            SecretSetNotFoundError: If the set does not exist
            StoreUnavailableError: If the store cannot be reached
            InvalidArgumentError: If the scope identity is invalid
        """
        set_name = self.resolve_set_name(secrets_type, function_name)
        pairs = await run_cancellable(self.store.fetch_all(set_name), cancel_event)
        decoded = self._decode_pairs(set_name, pairs)

        if secrets_type is ScriptSecretsType.HOST:
            return self._build_host_secrets(decoded)

        return FunctionSecrets(
            keys=[
                d.key
                for d in decoded
                if d.category is KeyCategory.FUNCTION
                and d.function_name == function_name
            ]
        )

    async def write(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None,
        secrets: ScriptSecrets,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        """
        Store the secrets of one scope and notify other instances.

        On a read-only store only the sentinel is touched: the externally
        provisioned values stay the source of truth and other instances
        are told to re-fetch them.
        """
        set_name = self.resolve_set_name(secrets_type, function_name)
        pairs = self._encode(secrets_type, function_name, secrets)
        prefix = codec.scope_prefix(secrets_type, function_name)
        log = logger.bind(scope=set_name, count=len(pairs))

        try:
            await run_cancellable(
                self.store.put_all(set_name, pairs, prefix), cancel_event
            )
        except WriteNotSupportedError:
            log.info(
                f"Store '{self.store.name}' is read-only; "
                f"touching sentinel only for '{set_name}'"
            )
            await self.sentinel.touch(secrets_type, function_name)
            return

        # Sentinel last: a fresh marker implies the pairs are visible
        await self.sentinel.touch(secrets_type, function_name)
        log.info(f"Wrote {len(pairs)} secrets to '{set_name}' ({prefix}*)")

    # ------------------------------------------------------------------
    # Purge
    # ------------------------------------------------------------------

    @property
    def purge_allowed(self) -> bool:
        if not self.store.supports_purge:
            return False
        return True if self.purge_enabled is None else self.purge_enabled

    async def purge_stale(
        self,
        current_function_names: Iterable[str],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[str]:
        """
        Remove secrets of functions absent from ``current_function_names``.

        Function names compare case-insensitively. Stores that do not
        support purge (or where it is disabled by configuration) keep
        stale secrets and return an empty list.

        Returns:
            Names of the purged functions
        """
        if not self.store.supports_purge:
            logger.bind(scope=self.store.name, count=0).info(
                f"Purge skipped: store '{self.store.name}' keeps stale secrets"
            )
            return []
        if not self.purge_allowed:
            logger.bind(scope=self.store.name, count=0).info(
                "Purge skipped: disabled by configuration"
            )
            return []

        live = {name.lower() for name in current_function_names}

        if self.layout is SecretSetLayout.PER_SCOPE:
            purged = await self._purge_function_sets(live, cancel_event)
        else:
            purged = await self._purge_shared_set(live, cancel_event)

        for function_name in purged:
            await self.sentinel.touch(ScriptSecretsType.FUNCTION, function_name)

        logger.bind(scope=self.store.name, count=len(purged)).info(
            f"Purged secrets of {len(purged)} stale functions: {purged}"
        )
        return purged

    async def _purge_function_sets(
        self, live: set[str], cancel_event: asyncio.Event | None
    ) -> list[str]:
        sets = await run_cancellable(self.store.list_sets(), cancel_event)
        stale = [
            name
            for name in sets
            if name != self.host_set_name
            and codec.DELIMITER not in name
            and name.lower() not in live
        ]
        for name in stale:
            await run_cancellable(self.store.delete_set(name), cancel_event)
        return stale

    async def _purge_shared_set(
        self, live: set[str], cancel_event: asyncio.Event | None
    ) -> list[str]:
        set_name = self.secret_set_name
        try:
            pairs = await run_cancellable(self.store.fetch_all(set_name), cancel_event)
        except SecretSetNotFoundError:
            return []

        present: list[str] = []
        for d in self._decode_pairs(set_name, pairs):
            if d.category is KeyCategory.FUNCTION and d.function_name not in present:
                present.append(d.function_name)

        stale = [name for name in present if name.lower() not in live]
        for name in stale:
            prefix = codec.scope_prefix(ScriptSecretsType.FUNCTION, name)
            await run_cancellable(self.store.put_all(set_name, {}, prefix), cancel_event)
        return stale

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    async def write_snapshot(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None,
        secrets: ScriptSecrets,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        """
        Store a historical copy of a scope's secrets.

        Raises:
            SnapshotNotSupportedError: Before touching the store, if unsupported
        """
        self._require_snapshots()
        set_name = self.resolve_set_name(secrets_type, function_name)
        pairs = self._encode(secrets_type, function_name, secrets)
        snapshot_id = await run_cancellable(
            self.store.write_snapshot(set_name, pairs), cancel_event
        )
        logger.bind(scope=set_name, count=len(pairs)).info(
            f"Wrote snapshot {snapshot_id}"
        )
        return snapshot_id

    async def list_snapshots(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> list[str]:
        """List snapshot identifiers of a scope, oldest first."""
        self._require_snapshots()
        set_name = self.resolve_set_name(secrets_type, function_name)
        return await run_cancellable(self.store.list_snapshots(set_name), cancel_event)

    def _require_snapshots(self) -> None:
        if not self.store.supports_snapshots:
            raise SnapshotNotSupportedError(
                f"Store '{self.store.name}' does not support snapshots"
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_set_name(
        self, secrets_type: ScriptSecretsType, function_name: str | None
    ) -> str:
        """
        Resolve the secret set that holds a scope.

        Raises:
            InvalidArgumentError: If a function scope has no valid name
        """
        if secrets_type is ScriptSecretsType.FUNCTION:
            codec.validate_function_name(function_name)

        if self.layout is SecretSetLayout.SHARED:
            return self.secret_set_name
        if secrets_type is ScriptSecretsType.HOST:
            return self.host_set_name
        if function_name.lower() == self.host_set_name.lower():
            raise InvalidArgumentError(
                f"Function name '{function_name}' collides with the host secret set"
            )
        return function_name

    def _decode_pairs(self, set_name: str, pairs: dict[str, str]) -> list[DecodedKey]:
        decoded: list[DecodedKey] = []
        skipped = 0
        for name, value in pairs.items():
            try:
                decoded.append(codec.decode(name, value))
            except DecodeSkippedError as e:
                skipped += 1
                logger.bind(scope=set_name, count=skipped).warning(
                    f"Skipping secret in '{set_name}': {e}"
                )
        return decoded

    @staticmethod
    def _build_host_secrets(decoded: list[DecodedKey]) -> HostSecrets:
        master_key = None
        function_keys = []
        system_keys = []
        for d in decoded:
            if d.category is KeyCategory.MASTER:
                master_key = d.key
            elif d.category is KeyCategory.HOST_FUNCTION:
                function_keys.append(d.key)
            elif d.category is KeyCategory.SYSTEM:
                system_keys.append(d.key)
        return HostSecrets(
            master_key=master_key, function_keys=function_keys, system_keys=system_keys
        )

    @staticmethod
    def _encode(
        secrets_type: ScriptSecretsType,
        function_name: str | None,
        secrets: ScriptSecrets,
    ) -> dict[str, str]:
        if secrets_type is ScriptSecretsType.HOST:
            if not isinstance(secrets, HostSecrets):
                raise InvalidArgumentError("Host scope requires HostSecrets")
            pairs = {}
            if secrets.master_key is not None:
                pairs[codec.encode(secrets.master_key, KeyCategory.MASTER)] = (
                    secrets.master_key.value
                )
            for key in secrets.function_keys:
                pairs[codec.encode(key, KeyCategory.HOST_FUNCTION)] = key.value
            for key in secrets.system_keys:
                pairs[codec.encode(key, KeyCategory.SYSTEM)] = key.value
            return pairs

        if not isinstance(secrets, FunctionSecrets):
            raise InvalidArgumentError("Function scope requires FunctionSecrets")
        return {
            codec.encode(key, KeyCategory.FUNCTION, function_name): key.value
            for key in secrets.keys
        }
