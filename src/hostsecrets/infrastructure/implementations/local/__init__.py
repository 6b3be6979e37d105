"""Local file-based infrastructure implementations for development."""

from hostsecrets.infrastructure.implementations.local.secret_store import (
    LocalSecretStore,
)

__all__ = ["LocalSecretStore"]
