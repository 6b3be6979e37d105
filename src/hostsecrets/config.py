"""
Application configuration and environment variables.

This module unifies configuration using pydantic-settings.
Variables can come from:
1. .env file
2. System environment variables (have priority)
3. Default values

Naming convention:
- In Python code: snake_case (secrets_provider)
- In .env or ENV vars: UPPER_CASE (SECRETS_PROVIDER)
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Unified host configuration.

    Example:
        # In .env or as environment variable:
        SECRETS_PROVIDER=kubernetes
        KUBERNETES_SECRET_NAME=function-host-keys
        SENTINEL_DIR=/shared/secrets-sentinels
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # PROJECT SETTINGS
    # ============================================================================
    project_name: str = Field(default="Function Host Secrets", description="Project name")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    enable_docs: bool = Field(
        default=False, description="Enable API documentation (Swagger/ReDoc)"
    )

    # ============================================================================
    # LOGGING SETTINGS
    # ============================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | trace_id={extra[trace_id]} | scope={extra[scope]} | count={extra[count]} | {name}:{function}:{line} - {message}",  # noqa: E501
        description="Log format",
    )
    logger_enqueue: bool = Field(
        default=False, description="Enqueue logs using multiprocessing"
    )

    # ============================================================================
    # OBSERVABILITY SETTINGS (OpenTelemetry)
    # ============================================================================
    environment: str = Field(default="development", description="Environment name")
    otel_enabled: bool = Field(default=False, description="Enable OpenTelemetry")
    otel_service_name: str = Field(
        default="hostsecrets", description="Service name for OpenTelemetry"
    )
    otel_exporter_otlp_endpoint: str = Field(
        default="http://otel-collector:4317",
        description="OpenTelemetry collector endpoint",
    )

    # ============================================================================
    # SECRETS STORE SETTINGS
    # ============================================================================
    secrets_provider: str = Field(
        default="local",
        description="Backing secret store (local, aws, kubernetes)",
    )
    secrets_base_dir: str = Field(
        default="./.local_infrastructure/secrets",
        description="Directory for the local file store",
    )
    sentinel_dir: str = Field(
        default="./.local_infrastructure/sentinels",
        description="Directory shared by all instances for sentinel markers",
    )
    secret_set_layout: str | None = Field(
        default=None,
        description="shared or per_scope (default depends on provider)",
    )
    secret_set_name: str | None = Field(
        default=None,
        description="Set holding all keys when layout is shared",
    )
    host_secret_set_name: str = Field(
        default="host", description="Set holding host keys when layout is per_scope"
    )
    purge_stale_secrets: bool | None = Field(
        default=None,
        description="Purge secrets of deleted functions (None: store default)",
    )
    store_timeout_seconds: float = Field(
        default=5.0, description="Timeout of a single backing store call"
    )
    store_max_attempts: int = Field(
        default=3, description="Retry attempts for backing store calls"
    )

    # AWS Secrets Manager
    aws_region: str = Field(default="eu-west-1", description="AWS region")
    aws_secrets_prefix: str = Field(
        default="hostsecrets",
        description="Prefix for secrets in AWS Secrets Manager",
    )
    aws_recovery_window_days: int = Field(
        default=7, description="Recovery window when purging AWS secret sets"
    )

    # Kubernetes
    kubernetes_api_url: str = Field(
        default="https://kubernetes.default.svc",
        description="Kubernetes API server URL",
    )
    kubernetes_namespace: str | None = Field(
        default=None, description="Namespace of the secret (default: pod namespace)"
    )
    kubernetes_secret_name: str = Field(
        default="function-host-keys",
        description="Kubernetes Secret holding all host and function keys",
    )
    kubernetes_service_account_path: str = Field(
        default="/run/secrets/kubernetes.io/serviceaccount",
        description="Mounted service account directory",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings (LRU cached).

    To refresh the configuration, clear the cache:
        get_settings.cache_clear()
    """
    return Settings()


# Global instance for use outside FastAPI
settings = get_settings()
