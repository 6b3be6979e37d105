"""
Error taxonomy for secret storage operations.

- StoreUnavailableError: backing store unreachable (transient, retry with backoff)
- SecretSetNotFoundError: secret set absent ("nothing provisioned yet")
- WriteNotSupportedError / SnapshotNotSupportedError: capability mismatch
- DecodeSkippedError: one stored pair could not be decoded (non-fatal)
- InvalidArgumentError: missing or malformed secret set identity
- OperationCancelledError: caller cancelled the in-flight store call
"""


class SecretsError(Exception):
    """Base class for all secret storage errors."""


class StoreUnavailableError(SecretsError):
    """Backing store could not be reached or rejected our credentials."""


class SecretSetNotFoundError(SecretsError):
    """The named secret set does not exist in the backing store."""

    def __init__(self, set_name: str):
        super().__init__(f"Secret set not found: {set_name}")
        self.set_name = set_name


class WriteNotSupportedError(SecretsError):
    """The backing store is read-only for this process."""


class SnapshotNotSupportedError(SecretsError):
    """The backing store does not keep historical snapshots."""


class DecodeSkippedError(SecretsError):
    """A stored pair name matched no known key prefix."""

    def __init__(self, encoded_name: str, reason: str = "unrecognized key name"):
        super().__init__(f"Cannot decode '{encoded_name}': {reason}")
        self.encoded_name = encoded_name
        self.reason = reason


class InvalidArgumentError(SecretsError, ValueError):
    """Caller passed an empty or malformed secret set identity."""


class OperationCancelledError(SecretsError):
    """The operation was cancelled before the store call completed."""
