"""AWS infrastructure implementations package."""

from hostsecrets.infrastructure.implementations.aws.secret_store import (
    AWSSecretStore,
)

__all__ = ["AWSSecretStore"]
