"""Kubernetes cluster-secret implementation."""

from hostsecrets.infrastructure.implementations.kubernetes.secret_store import (
    KubernetesSecretStore,
)

__all__ = ["KubernetesSecretStore"]
