"""
AWS Secrets Manager implementation of the secret store.

Each secret set is one Secrets Manager secret named ``{prefix}/{set_name}``
whose SecretString is a JSON object of encoded key names to values.
Secrets are encrypted at rest using AWS KMS.

Writes read the current object, replace one scope and put a new version.
Two instances writing the same set concurrently: last writer wins.
"""

import asyncio
import json
from collections.abc import Mapping
from typing import Any

try:
    import boto3
    from botocore.config import Config
    from botocore.exceptions import BotoCoreError, ClientError

    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False

from hostsecrets.core.logging import logger
from hostsecrets.infrastructure.errors import (
    SecretSetNotFoundError,
    StoreUnavailableError,
)
from hostsecrets.infrastructure.repositories.secret_store import SecretStore

NOT_FOUND_CODE = "ResourceNotFoundException"
INVALID_REQUEST_CODE = "InvalidRequestException"


def _is_scheduled_for_deletion(error: "ClientError") -> bool:
    """Whether a call failed because the secret awaits deletion."""
    details = error.response.get("Error", {})
    return (
        details.get("Code") == INVALID_REQUEST_CODE
        and "marked" in details.get("Message", "").lower()
    )


def _is_absent(error: "ClientError") -> bool:
    return (
        error.response.get("Error", {}).get("Code") == NOT_FOUND_CODE
        or _is_scheduled_for_deletion(error)
    )


class AWSSecretStore(SecretStore):
    """AWS Secrets Manager backed secret store.

    Environment Variables:
    - AWS_REGION: AWS region (default: us-east-1)
    - AWS_ACCESS_KEY_ID: AWS access key (optional if using IAM role)
    - AWS_SECRET_ACCESS_KEY: AWS secret key (optional if using IAM role)
    """

    name = "aws"
    supports_encryption = True
    supports_snapshots = False
    supports_purge = True
    write_semantics = "scope-replace"

    def __init__(
        self,
        region_name: str = "us-east-1",
        prefix: str = "hostsecrets",
        timeout_seconds: float = 5.0,
        max_attempts: int = 3,
        recovery_window_days: int = 7,
    ):
        """Initialize AWS Secrets Manager client.

        Args:
            region_name: AWS region for Secrets Manager
            prefix: Prefix for all secret names (e.g., "hostsecrets/prod")
            timeout_seconds: Connect and read timeout per call
            max_attempts: Retry attempts made by botocore
            recovery_window_days: Recovery window when deleting a set
        """
        if not BOTO3_AVAILABLE:
            raise ImportError(
                "boto3 is required for the AWS secret store. "
                "Install with: pip install boto3"
            )

        self.region_name = region_name
        self.prefix = prefix
        self.recovery_window_days = recovery_window_days
        self.client = boto3.client(
            "secretsmanager",
            region_name=region_name,
            config=Config(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": max_attempts, "mode": "standard"},
            ),
        )

        logger.info(
            f"Initialized AWSSecretStore with region={region_name}, prefix={prefix}"
        )

    def _get_secret_name(self, set_name: str) -> str:
        """Generate full secret name with prefix."""
        return f"{self.prefix}/{set_name}"

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Run a blocking client call off the event loop.

        ClientErrors meaning the secret is missing or scheduled for
        deletion propagate unchanged; every other failure becomes
        StoreUnavailableError.
        """
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except ClientError as e:
            if _is_absent(e):
                raise
            logger.error(f"Secrets Manager {operation} failed: {e}")
            raise StoreUnavailableError(str(e)) from e
        except BotoCoreError as e:
            logger.error(f"Secrets Manager {operation} unreachable: {e}")
            raise StoreUnavailableError(str(e)) from e

    @staticmethod
    def _parse(secret_name: str, response: dict[str, Any]) -> dict[str, str]:
        try:
            data = json.loads(response.get("SecretString") or "{}")
        except json.JSONDecodeError as e:
            raise StoreUnavailableError(
                f"Secret {secret_name} does not hold a JSON object"
            ) from e
        if not isinstance(data, dict):
            raise StoreUnavailableError(
                f"Secret {secret_name} does not hold a JSON object"
            )
        return {str(k): str(v) for k, v in data.items()}

    async def fetch_all(self, set_name: str) -> dict[str, str]:
        """Fetch and parse the JSON object of a set.

        A secret scheduled for deletion reads as a missing set.
        """
        secret_name = self._get_secret_name(set_name)

        try:
            response = await self._call("get_secret_value", SecretId=secret_name)
        except ClientError as e:
            if _is_scheduled_for_deletion(e):
                logger.debug(f"Secret scheduled for deletion: {secret_name}")
            else:
                logger.debug(f"Secret not found: {secret_name}")
            raise SecretSetNotFoundError(set_name) from None

        logger.debug(f"Retrieved secret set: {secret_name}")
        return self._parse(secret_name, response)

    async def put_all(
        self, set_name: str, pairs: Mapping[str, str], scope_prefix: str
    ) -> None:
        """Replace one scope of a set and store a new secret version.

        A set scheduled for deletion is restored first; its old content
        is discarded.
        """
        secret_name = self._get_secret_name(set_name)
        scheduled_for_deletion = False

        try:
            response = await self._call("get_secret_value", SecretId=secret_name)
            existing = self._parse(secret_name, response)
            exists = True
        except ClientError as e:
            existing = {}
            scheduled_for_deletion = _is_scheduled_for_deletion(e)
            exists = scheduled_for_deletion

        merged = {k: v for k, v in existing.items() if not k.startswith(scope_prefix)}
        merged.update(pairs)
        payload = json.dumps(merged, sort_keys=True)

        if scheduled_for_deletion:
            await self._call("restore_secret", SecretId=secret_name)
            logger.info(f"Restored secret set scheduled for deletion: {secret_name}")

        if exists:
            await self._call(
                "put_secret_value", SecretId=secret_name, SecretString=payload
            )
            logger.info(f"Updated secret set: {secret_name}")
        else:
            await self._call(
                "create_secret",
                Name=secret_name,
                SecretString=payload,
                Description=f"Host secrets: {set_name}",
            )
            logger.info(f"Created secret set: {secret_name}")

    async def delete_set(self, set_name: str) -> None:
        """Schedule deletion of a set.

        Secrets stay recoverable for ``recovery_window_days``.
        """
        secret_name = self._get_secret_name(set_name)

        try:
            await self._call(
                "delete_secret",
                SecretId=secret_name,
                RecoveryWindowInDays=self.recovery_window_days,
            )
        except ClientError:
            logger.debug(f"Secret set already deleted: {secret_name}")
            return

        logger.info(
            f"Scheduled secret set deletion: {secret_name} "
            f"({self.recovery_window_days}-day recovery)"
        )

    async def list_sets(self) -> list[str]:
        """List set names stored under the configured prefix."""

        def _list() -> list[str]:
            paginator = self.client.get_paginator("list_secrets")
            names = []
            for page in paginator.paginate(
                Filters=[{"Key": "name", "Values": [f"{self.prefix}/"]}]
            ):
                for secret in page["SecretList"]:
                    name = secret["Name"]
                    if name.startswith(f"{self.prefix}/"):
                        names.append(name[len(self.prefix) + 1 :])
            return names

        try:
            names = await asyncio.to_thread(_list)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to list secret sets: {e}")
            raise StoreUnavailableError(str(e)) from e

        logger.debug(f"Listed {len(names)} secret sets with prefix: {self.prefix}")
        return sorted(names)
