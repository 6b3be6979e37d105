"""Abstract store interface and the secrets repository built on it."""

from hostsecrets.infrastructure.repositories.secret_store import SecretStore
from hostsecrets.infrastructure.repositories.secrets_repository import (
    SecretSetLayout,
    SecretsRepository,
)

__all__ = [
    "SecretSetLayout",
    "SecretStore",
    "SecretsRepository",
]
