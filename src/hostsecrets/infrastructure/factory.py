"""
Infrastructure factory for secret store selection.

Selects the backing store from configuration and wires it into a
SecretsRepository together with the sentinel notifier:
- local: JSON files, one set per scope
- aws: AWS Secrets Manager, one secret per scope
- kubernetes: one cluster Secret holding every key (read-only)

Usage:
    from hostsecrets.infrastructure import InfrastructureFactory
    from hostsecrets.config import get_settings

    factory = InfrastructureFactory.from_settings(get_settings())
    repository = factory.get_secrets_repository()
"""

from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

from hostsecrets.infrastructure.repositories import (
    SecretSetLayout,
    SecretsRepository,
    SecretStore,
)
from hostsecrets.infrastructure.sentinel import SentinelNotifier

if TYPE_CHECKING:
    from hostsecrets.config import Settings

SecretsProvider = Literal["local", "aws", "kubernetes"]

DEFAULT_LAYOUTS: dict[str, SecretSetLayout] = {
    "local": SecretSetLayout.PER_SCOPE,
    "aws": SecretSetLayout.PER_SCOPE,
    "kubernetes": SecretSetLayout.SHARED,
}


class InfrastructureFactory:
    """
    Factory for creating secret store and repository instances.

    Provides dependency injection for store-agnostic secret access.
    """

    def __init__(self, provider: SecretsProvider | None = None, **config: Any):
        """
        Initialize infrastructure factory.

        Args:
            provider: Secret store provider ("local", "aws", "kubernetes").
                     If None, uses "local" as default.
            **config: Provider-specific configuration options

        Raises:
            ValueError: If provider is not supported
        """
        if provider is None:
            provider = "local"

        if provider not in DEFAULT_LAYOUTS:
            raise ValueError(f"Unsupported provider: {provider}")

        self.provider = provider
        self.config = config

        logger.info(f"Initialized InfrastructureFactory with provider: {provider}")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "InfrastructureFactory":
        """
        Create factory from Settings object.

        Args:
            settings: Application settings from config.py

        Returns:
            InfrastructureFactory configured from settings
        """
        config = {
            "base_dir": settings.secrets_base_dir,
            "sentinel_dir": settings.sentinel_dir,
            "layout": settings.secret_set_layout,
            "secret_set_name": settings.secret_set_name,
            "host_set_name": settings.host_secret_set_name,
            "purge_enabled": settings.purge_stale_secrets,
            "timeout_seconds": settings.store_timeout_seconds,
            "max_attempts": settings.store_max_attempts,
            "aws_region": settings.aws_region,
            "secrets_prefix": settings.aws_secrets_prefix,
            "recovery_window_days": settings.aws_recovery_window_days,
            "kubernetes_api_url": settings.kubernetes_api_url,
            "kubernetes_namespace": settings.kubernetes_namespace,
            "kubernetes_secret_name": settings.kubernetes_secret_name,
            "kubernetes_service_account_path": settings.kubernetes_service_account_path,
        }

        return cls(provider=settings.secrets_provider, **config)

    def _get(self, key: str, default: Any) -> Any:
        value = self.config.get(key)
        return default if value is None else value

    def get_secret_store(self) -> SecretStore:
        """
        Get the backing secret store for the configured provider.

        Returns:
            SecretStore implementation
        """
        if self.provider == "local":
            from hostsecrets.infrastructure.implementations.local import (
                LocalSecretStore,
            )

            return LocalSecretStore(
                base_dir=self._get("base_dir", "./.local_infrastructure/secrets")
            )

        elif self.provider == "aws":
            from hostsecrets.infrastructure.implementations.aws import AWSSecretStore

            return AWSSecretStore(
                region_name=self._get("aws_region", "eu-west-1"),
                prefix=self._get("secrets_prefix", "hostsecrets"),
                timeout_seconds=self._get("timeout_seconds", 5.0),
                max_attempts=self._get("max_attempts", 3),
                recovery_window_days=self._get("recovery_window_days", 7),
            )

        from hostsecrets.infrastructure.implementations.kubernetes import (
            KubernetesSecretStore,
        )

        return KubernetesSecretStore(
            api_url=self._get("kubernetes_api_url", "https://kubernetes.default.svc"),
            namespace=self.config.get("kubernetes_namespace"),
            service_account_path=self._get(
                "kubernetes_service_account_path",
                "/run/secrets/kubernetes.io/serviceaccount",
            ),
            timeout_seconds=self._get("timeout_seconds", 5.0),
        )

    def get_sentinel(self) -> SentinelNotifier:
        """Get the sentinel notifier shared by all host instances."""
        return SentinelNotifier(
            self._get("sentinel_dir", "./.local_infrastructure/sentinels")
        )

    def get_layout(self) -> SecretSetLayout:
        layout = self.config.get("layout")
        if layout is None:
            return DEFAULT_LAYOUTS[self.provider]
        return SecretSetLayout(layout)

    def get_secrets_repository(self) -> SecretsRepository:
        """
        Get a secrets repository over the configured store.

        Returns:
            SecretsRepository wired with store and sentinel
        """
        layout = self.get_layout()
        secret_set_name = self.config.get("secret_set_name")
        if layout is SecretSetLayout.SHARED and not secret_set_name:
            if self.provider == "kubernetes":
                secret_set_name = self._get(
                    "kubernetes_secret_name", "function-host-keys"
                )

        return SecretsRepository(
            self.get_secret_store(),
            self.get_sentinel(),
            layout=layout,
            secret_set_name=secret_set_name,
            host_set_name=self._get("host_set_name", "host"),
            purge_enabled=self.config.get("purge_enabled"),
        )
