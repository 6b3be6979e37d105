"""
Abstract interface for backing secret stores.

A secret store holds named secret sets, each a flat mapping of
encoded key name to value. The repository is written purely against
this interface, so a file directory, a managed key vault or a cluster
secret object can be substituted by configuration.

Capabilities differ per store and are declared up front:
- supports_encryption: values are encrypted at rest by the store
- supports_snapshots: historical copies can be written and listed
- supports_purge: orphaned function sets may be removed
Unsupported operations raise, they never silently succeed.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from hostsecrets.infrastructure.errors import (
    SnapshotNotSupportedError,
    WriteNotSupportedError,
)


class SecretStore(ABC):
    """
    Abstract capability interface over an external secret service.

    Implementations must provide ``fetch_all``. Writes, deletes and
    snapshots are optional and raise by default.
    """

    name: str = "abstract"
    supports_encryption: bool = False
    supports_snapshots: bool = False
    supports_purge: bool = False
    # "scope-replace": put_all atomically replaces one scope of a set
    # "read-only": secrets are provisioned out of band
    write_semantics: str = "read-only"

    @abstractmethod
    async def fetch_all(self, set_name: str) -> dict[str, str]:
        """
        Fetch every pair of a secret set.

        Args:
            set_name: Secret set identifier

        Returns:
            Mapping of encoded key name to value

        Raises:
            SecretSetNotFoundError: If the set does not exist
            StoreUnavailableError: On transport or authentication failure
        """
        pass

    async def put_all(
        self, set_name: str, pairs: Mapping[str, str], scope_prefix: str
    ) -> None:
        """
        Replace every pair of a set whose name starts with ``scope_prefix``.

        Pairs outside the prefix are left untouched. The set is created if
        it does not exist yet.

        Raises:
            WriteNotSupportedError: If the store is read-only
        """
        raise WriteNotSupportedError(f"{self.name} store does not support writes")

    async def delete_set(self, set_name: str) -> None:
        """
        Remove a whole secret set.

        Raises:
            WriteNotSupportedError: If the store is read-only
        """
        raise WriteNotSupportedError(f"{self.name} store does not support deletes")

    async def list_sets(self) -> list[str]:
        """List secret set names (excluding snapshots)."""
        return []

    async def write_snapshot(self, set_name: str, pairs: Mapping[str, str]) -> str:
        """
        Store a historical copy of a set.

        Returns:
            Snapshot identifier

        Raises:
            SnapshotNotSupportedError: If the store keeps no history
        """
        raise SnapshotNotSupportedError(
            f"{self.name} store does not support snapshots"
        )

    async def list_snapshots(self, set_name: str) -> list[str]:
        """
        List snapshot identifiers of a set, oldest first.

        Raises:
            SnapshotNotSupportedError: If the store keeps no history
        """
        raise SnapshotNotSupportedError(
            f"{self.name} store does not support snapshots"
        )
