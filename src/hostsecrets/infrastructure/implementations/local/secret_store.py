"""
Local file-based secret store implementation.

Stores each secret set as a JSON object in a local directory:
    {base_dir}/
        host.json
        {function_name}.json
        {set_name}.snapshot.{timestamp}.json

Writes replace the file atomically. Supports purge and snapshots.

WARNING: Values are stored UNENCRYPTED. Callers that need encryption
must encrypt values before writing.
"""

import json
import os
import tempfile
import time
from collections.abc import Mapping
from pathlib import Path

from loguru import logger

from hostsecrets.infrastructure.errors import (
    InvalidArgumentError,
    SecretSetNotFoundError,
    StoreUnavailableError,
)
from hostsecrets.infrastructure.repositories.secret_store import SecretStore

SNAPSHOT_MARKER = ".snapshot."


class LocalSecretStore(SecretStore):
    """
    Directory of JSON files, one per secret set.

    Two writers replacing the same file concurrently: last writer wins.
    """

    name = "local"
    supports_encryption = False
    supports_snapshots = True
    supports_purge = True
    write_semantics = "scope-replace"

    def __init__(self, base_dir: str = "./.local_infrastructure/secrets"):
        """
        Initialize local secret store.

        Args:
            base_dir: Directory holding the secret set files
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        # Set restrictive permissions (owner read/write only)
        try:
            self.base_dir.chmod(0o700)
        except OSError as e:
            logger.warning(f"Could not set directory permissions: {e}")

        logger.info(f"Initialized LocalSecretStore at {self.base_dir}")

    def _set_path(self, set_name: str) -> Path:
        if (
            not set_name
            or set_name.startswith(".")
            or any(sep in set_name for sep in ("/", "\\"))
        ):
            raise InvalidArgumentError(f"Invalid secret set name: {set_name!r}")
        return self.base_dir / f"{set_name}.json"

    def _load(self, path: Path, set_name: str) -> dict[str, str]:
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SecretSetNotFoundError(set_name) from None
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(f"Corrupt secret set file {path}: {e}") from e
        return {str(k): str(v) for k, v in data.items()}

    def _dump(self, path: Path, pairs: Mapping[str, str]) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(dict(pairs), tmp, indent=2, sort_keys=True)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreUnavailableError(f"Cannot write {path}: {e}") from e

    async def fetch_all(self, set_name: str) -> dict[str, str]:
        """Read every pair of a secret set file."""
        return self._load(self._set_path(set_name), set_name)

    async def put_all(
        self, set_name: str, pairs: Mapping[str, str], scope_prefix: str
    ) -> None:
        """Replace the pairs under ``scope_prefix``, keeping all others."""
        path = self._set_path(set_name)
        try:
            existing = self._load(path, set_name)
        except SecretSetNotFoundError:
            existing = {}

        merged = {k: v for k, v in existing.items() if not k.startswith(scope_prefix)}
        merged.update(pairs)
        self._dump(path, merged)

        logger.debug(f"Stored {len(pairs)} pairs in {path.name}")

    async def delete_set(self, set_name: str) -> None:
        """Remove a secret set file (missing sets are ignored)."""
        path = self._set_path(set_name)
        path.unlink(missing_ok=True)
        logger.info(f"Deleted secret set: {set_name}")

    async def list_sets(self) -> list[str]:
        """List secret set names, excluding snapshots."""
        return sorted(
            p.stem
            for p in self.base_dir.glob("*.json")
            if SNAPSHOT_MARKER not in p.name and not p.name.startswith(".")
        )

    async def write_snapshot(self, set_name: str, pairs: Mapping[str, str]) -> str:
        """Write a timestamped copy next to the set file."""
        self._set_path(set_name)
        stamp = time.time_ns()
        while True:
            snapshot_id = f"{set_name}{SNAPSHOT_MARKER}{stamp:020d}"
            path = self.base_dir / f"{snapshot_id}.json"
            if not path.exists():
                break
            stamp += 1
        self._dump(path, pairs)
        return snapshot_id

    async def list_snapshots(self, set_name: str) -> list[str]:
        """List snapshot identifiers of a set, oldest first."""
        self._set_path(set_name)
        return sorted(
            p.stem for p in self.base_dir.glob(f"{set_name}{SNAPSHOT_MARKER}*.json")
        )
