"""
File-based sentinel notifier for cross-instance secret invalidation.

Every host instance shares a sentinel directory:
    {sentinel_dir}/
        host.json              <- host secrets scope
        {function_name}.json   <- one per function scope

Each file holds the UTC timestamp of the last secrets write for its scope.
Writers touch the marker after the secret pairs are stored; readers compare
it with the time they last fetched. The marker is a visibility hint, not a
lock, and never contains secret values.
"""

import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from hostsecrets.infrastructure.codec import validate_function_name
from hostsecrets.models.secrets import ScriptSecretsType, SentinelMarker

HOST_SENTINEL_FILE = "host.json"


class SentinelNotifier:
    """Tracks a last-write marker file per secrets scope."""

    def __init__(self, sentinel_dir: str):
        """
        Initialize sentinel notifier.

        Args:
            sentinel_dir: Directory shared by all host instances
        """
        if not sentinel_dir:
            raise ValueError("sentinel_dir is required")

        self.sentinel_dir = Path(sentinel_dir)
        self.sentinel_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized SentinelNotifier at {self.sentinel_dir}")

    def sentinel_path(
        self, secrets_type: ScriptSecretsType, function_name: str | None = None
    ) -> Path:
        """Get path to the marker file of a scope."""
        if secrets_type is ScriptSecretsType.HOST:
            return self.sentinel_dir / HOST_SENTINEL_FILE
        return self.sentinel_dir / f"{validate_function_name(function_name)}.json"

    async def touch(
        self, secrets_type: ScriptSecretsType, function_name: str | None = None
    ) -> datetime:
        """
        Record a write to a scope.

        The stored timestamp never moves backwards, even if the local clock
        does.

        Returns:
            The new marker timestamp
        """
        path = self.sentinel_path(secrets_type, function_name)
        now = datetime.now(UTC)
        previous = self._read_timestamp(path)
        stamp = max(now, previous) if previous else now

        # Atomic replace so readers never see a half-written marker
        fd, tmp_name = tempfile.mkstemp(dir=self.sentinel_dir, prefix=".sentinel-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(stamp.isoformat())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Touched sentinel {path.name} at {stamp.isoformat()}")
        return stamp

    async def current_version(
        self, secrets_type: ScriptSecretsType, function_name: str | None = None
    ) -> datetime | None:
        """Timestamp of the last write to a scope, or None if never written."""
        return self._read_timestamp(self.sentinel_path(secrets_type, function_name))

    async def marker(
        self, secrets_type: ScriptSecretsType, function_name: str | None = None
    ) -> SentinelMarker | None:
        path = self.sentinel_path(secrets_type, function_name)
        stamp = self._read_timestamp(path)
        if stamp is None:
            return None
        return SentinelMarker(scope_path=str(path), last_write=stamp)

    async def is_stale(
        self,
        secrets_type: ScriptSecretsType,
        function_name: str | None,
        fetched_at: datetime,
    ) -> bool:
        """
        Check whether secrets fetched at ``fetched_at`` may be out of date.

        A marker equal to the fetch time counts as stale: concurrent writers
        are not strictly ordered, so a tie must be re-fetched.
        """
        version = await self.current_version(secrets_type, function_name)
        return version is not None and version >= fetched_at

    def _read_timestamp(self, path: Path) -> datetime | None:
        try:
            content = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

        try:
            stamp = datetime.fromisoformat(content)
        except ValueError:
            # Unreadable marker: treat the scope as just changed
            logger.warning(f"Invalid sentinel content in {path.name}: {content!r}")
            return datetime.now(UTC)

        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=UTC)
        return stamp
