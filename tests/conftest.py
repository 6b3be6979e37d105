"""Global pytest configuration and fixtures for all tests."""

import os
import shutil
import tempfile
from collections.abc import Mapping
from pathlib import Path

import pytest
from loguru import logger

from hostsecrets.config import get_settings
from hostsecrets.di import get_secret_manager
from hostsecrets.infrastructure.errors import SecretSetNotFoundError
from hostsecrets.infrastructure.repositories.secret_store import SecretStore
from hostsecrets.infrastructure.sentinel import SentinelNotifier


@pytest.fixture(scope="session", autouse=True)
def set_test_env_vars():
    """
    Set environment variables for testing.

    Points every store at local temporary directories so no test talks
    to a real secret service.
    """
    original_env = {}
    base_dir = Path(tempfile.mkdtemp(prefix="hostsecrets-tests-"))

    test_env_vars = {
        "SECRETS_PROVIDER": "local",
        "SECRETS_BASE_DIR": str(base_dir / "secrets"),
        "SENTINEL_DIR": str(base_dir / "sentinels"),
        "ENABLE_DOCS": "false",
        "OTEL_ENABLED": "false",
    }

    for key, value in test_env_vars.items():
        original_env[key] = os.environ.get(key)
        os.environ[key] = value

    # Settings are cached at import time; rebuild them from the test env
    get_settings.cache_clear()
    get_secret_manager.cache_clear()

    yield

    for key, original_value in original_env.items():
        if original_value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original_value
    get_settings.cache_clear()
    get_secret_manager.cache_clear()
    shutil.rmtree(base_dir, ignore_errors=True)


class InMemorySecretStore(SecretStore):
    """Dict-backed store with configurable capabilities."""

    name = "memory"
    write_semantics = "scope-replace"

    def __init__(
        self,
        sets: dict[str, dict[str, str]] | None = None,
        *,
        writable: bool = True,
        supports_snapshots: bool = False,
        supports_purge: bool = True,
        supports_encryption: bool = False,
    ):
        self.sets = sets if sets is not None else {}
        self.snapshots: dict[str, list[dict[str, str]]] = {}
        self.writable = writable
        self.supports_snapshots = supports_snapshots
        self.supports_purge = supports_purge
        self.supports_encryption = supports_encryption
        self.fetch_count = 0
        if not writable:
            self.write_semantics = "read-only"

    async def fetch_all(self, set_name: str) -> dict[str, str]:
        self.fetch_count += 1
        if set_name not in self.sets:
            raise SecretSetNotFoundError(set_name)
        return dict(self.sets[set_name])

    async def put_all(
        self, set_name: str, pairs: Mapping[str, str], scope_prefix: str
    ) -> None:
        if not self.writable:
            await super().put_all(set_name, pairs, scope_prefix)
        existing = self.sets.get(set_name, {})
        merged = {k: v for k, v in existing.items() if not k.startswith(scope_prefix)}
        merged.update(pairs)
        self.sets[set_name] = merged

    async def delete_set(self, set_name: str) -> None:
        self.sets.pop(set_name, None)

    async def list_sets(self) -> list[str]:
        return sorted(self.sets)

    async def write_snapshot(self, set_name: str, pairs: Mapping[str, str]) -> str:
        if not self.supports_snapshots:
            return await super().write_snapshot(set_name, pairs)
        history = self.snapshots.setdefault(set_name, [])
        history.append(dict(pairs))
        return f"{set_name}.snapshot.{len(history)}"

    async def list_snapshots(self, set_name: str) -> list[str]:
        if not self.supports_snapshots:
            return await super().list_snapshots(set_name)
        return [
            f"{set_name}.snapshot.{i + 1}"
            for i in range(len(self.snapshots.get(set_name, [])))
        ]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def sentinel(temp_dir):
    """Sentinel notifier writing into a temporary directory."""
    return SentinelNotifier(str(temp_dir / "sentinels"))


@pytest.fixture
def memory_store():
    """Writable in-memory store."""
    return InMemorySecretStore()


@pytest.fixture
def log_records():
    """Capture loguru records emitted during a test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def store_factory():
    """Build in-memory stores with custom capabilities."""
    return InMemorySecretStore
