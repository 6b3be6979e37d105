"""
Kubernetes cluster-secret implementation of the secret store.

Reads one ``Secret`` object through the Kubernetes API using the pod's
service account:
    /run/secrets/kubernetes.io/serviceaccount/
        token       <- bearer token (re-read on every call, it rotates)
        namespace   <- default namespace
        ca.crt      <- API server CA bundle

The Secret is provisioned out of band (operator, deployment pipeline), so
this store is read-only: writes raise WriteNotSupportedError and the
repository only touches the sentinel. Stale function keys are tolerated
rather than deleted from the external system of record.
"""

import base64
import binascii
from pathlib import Path

import httpx
from loguru import logger

from hostsecrets.infrastructure.errors import (
    SecretSetNotFoundError,
    StoreUnavailableError,
)
from hostsecrets.infrastructure.repositories.secret_store import SecretStore

SERVICE_ACCOUNT_PATH = "/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_API_URL = "https://kubernetes.default.svc"


class KubernetesSecretStore(SecretStore):
    """
    Read-only store over a Kubernetes Secret.

    Attributes:
        api_url: Kubernetes API server URL
        namespace: Namespace holding the secret
        timeout_seconds: Per-request timeout
    """

    name = "kubernetes"
    supports_encryption = False
    supports_snapshots = False
    supports_purge = False
    write_semantics = "read-only"

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        namespace: str | None = None,
        service_account_path: str = SERVICE_ACCOUNT_PATH,
        timeout_seconds: float = 5.0,
    ):
        """
        Initialize Kubernetes secret store.

        Args:
            api_url: Kubernetes API server URL
            namespace: Namespace of the secret (default: pod namespace)
            service_account_path: Directory with the mounted token
            timeout_seconds: Per-request timeout
        """
        self.api_url = api_url.rstrip("/")
        self.service_account_path = Path(service_account_path)
        self.timeout_seconds = timeout_seconds
        self.namespace = namespace or self._read_service_account_file("namespace")

        if not self.namespace:
            raise ValueError(
                "Kubernetes namespace not configured and not found in "
                f"{self.service_account_path}"
            )

        logger.info(
            f"Initialized KubernetesSecretStore for namespace={self.namespace} "
            f"at {self.api_url}"
        )

    def _read_service_account_file(self, name: str) -> str | None:
        path = self.service_account_path / name
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

    def _verify(self) -> str | bool:
        ca_path = self.service_account_path / "ca.crt"
        return str(ca_path) if ca_path.exists() else True

    def _secret_url(self, set_name: str) -> str:
        return f"{self.api_url}/api/v1/namespaces/{self.namespace}/secrets/{set_name}"

    async def fetch_all(self, set_name: str) -> dict[str, str]:
        """
        Fetch and base64-decode the data of a Kubernetes Secret.

        Raises:
            SecretSetNotFoundError: If the Secret does not exist (404)
            StoreUnavailableError: On network, auth or server errors
        """
        headers = {"Accept": "application/json"}
        token = self._read_service_account_file("token")
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, verify=self._verify()
            ) as client:
                response = await client.get(self._secret_url(set_name), headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Kubernetes API unreachable: {e}")
            raise StoreUnavailableError(f"Kubernetes API unreachable: {e}") from e

        if response.status_code == 404:
            raise SecretSetNotFoundError(set_name)
        if response.status_code >= 400:
            logger.error(
                f"Kubernetes API returned {response.status_code} for secret {set_name}"
            )
            raise StoreUnavailableError(
                f"Kubernetes API returned {response.status_code} for secret {set_name}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise StoreUnavailableError(
                f"Kubernetes API returned a non-JSON body for secret {set_name}"
            ) from e
        data = (body.get("data") if isinstance(body, dict) else None) or {}
        if not isinstance(data, dict):
            raise StoreUnavailableError(f"Secret {set_name} has malformed data")

        pairs: dict[str, str] = {}
        for key, encoded in data.items():
            try:
                pairs[key] = base64.b64decode(encoded).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                logger.warning(f"Secret {set_name} has undecodable value for '{key}'")

        logger.debug(f"Retrieved {len(pairs)} pairs from Kubernetes secret {set_name}")
        return pairs
