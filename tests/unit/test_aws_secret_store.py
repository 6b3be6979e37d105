"""
Unit tests for the AWS Secrets Manager secret store.

boto3 clients are mocked; no AWS credentials are needed.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("boto3", reason="boto3 required for AWS tests")

from botocore.exceptions import ClientError, EndpointConnectionError  # noqa: E402

from hostsecrets.infrastructure.errors import (  # noqa: E402
    SecretSetNotFoundError,
    SnapshotNotSupportedError,
    StoreUnavailableError,
)


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _scheduled_for_deletion_error(operation: str = "GetSecretValue") -> ClientError:
    return ClientError(
        {
            "Error": {
                "Code": "InvalidRequestException",
                "Message": "You tried to perform the operation on a secret "
                "that's currently marked deleted.",
            }
        },
        operation,
    )


@pytest.fixture
def mock_client():
    """Patch boto3.client and return the mocked Secrets Manager client."""
    with patch("boto3.client") as mock_boto3_client:
        client = MagicMock()
        mock_boto3_client.return_value = client
        yield client


@pytest.fixture
def store(mock_client):
    from hostsecrets.infrastructure.implementations.aws import AWSSecretStore

    return AWSSecretStore(region_name="us-east-1", prefix="test", timeout_seconds=2)


class TestAWSSecretStore:
    """Tests for AWS Secrets Manager implementation."""

    def test_capabilities(self, store):
        assert store.supports_encryption is True
        assert store.supports_snapshots is False
        assert store.supports_purge is True

    def test_client_configured_with_timeouts(self, mock_client):
        from hostsecrets.infrastructure.implementations.aws import AWSSecretStore

        with patch("boto3.client") as mock_boto3_client:
            AWSSecretStore(region_name="eu-west-1", timeout_seconds=3, max_attempts=5)

        kwargs = mock_boto3_client.call_args[1]
        assert kwargs["region_name"] == "eu-west-1"
        config = kwargs["config"]
        assert config.connect_timeout == 3
        assert config.read_timeout == 3
        assert config.retries == {"max_attempts": 5, "mode": "standard"}

    @pytest.mark.asyncio
    async def test_fetch_all(self, store, mock_client):
        mock_client.get_secret_value.return_value = {
            "SecretString": json.dumps({"host.master": "M1"})
        }

        pairs = await store.fetch_all("host")

        assert pairs == {"host.master": "M1"}
        mock_client.get_secret_value.assert_called_once_with(SecretId="test/host")

    @pytest.mark.asyncio
    async def test_fetch_all_not_found(self, store, mock_client):
        mock_client.get_secret_value.side_effect = _client_error(
            "ResourceNotFoundException", "GetSecretValue"
        )

        with pytest.raises(SecretSetNotFoundError):
            await store.fetch_all("host")

    @pytest.mark.asyncio
    async def test_fetch_all_access_denied(self, store, mock_client):
        mock_client.get_secret_value.side_effect = _client_error(
            "AccessDeniedException", "GetSecretValue"
        )

        with pytest.raises(StoreUnavailableError):
            await store.fetch_all("host")

    @pytest.mark.asyncio
    async def test_fetch_all_endpoint_unreachable(self, store, mock_client):
        mock_client.get_secret_value.side_effect = EndpointConnectionError(
            endpoint_url="https://secretsmanager.us-east-1.amazonaws.com"
        )

        with pytest.raises(StoreUnavailableError):
            await store.fetch_all("host")

    @pytest.mark.asyncio
    async def test_put_all_creates_missing_set(self, store, mock_client):
        mock_client.get_secret_value.side_effect = _client_error(
            "ResourceNotFoundException", "GetSecretValue"
        )

        await store.put_all("fn1", {"functions.fn1.default": "F1"}, "functions.fn1.")

        mock_client.create_secret.assert_called_once()
        call_args = mock_client.create_secret.call_args[1]
        assert call_args["Name"] == "test/fn1"
        assert json.loads(call_args["SecretString"]) == {"functions.fn1.default": "F1"}
        mock_client.put_secret_value.assert_not_called()

    @pytest.mark.asyncio
    async def test_put_all_replaces_scope_of_existing_set(self, store, mock_client):
        mock_client.get_secret_value.return_value = {
            "SecretString": json.dumps(
                {
                    "host.master": "M1",
                    "host.functions.old": "K0",
                    "functions.fn1.default": "F1",
                }
            )
        }

        await store.put_all("shared", {"host.master": "M2"}, "host.")

        call_args = mock_client.put_secret_value.call_args[1]
        assert call_args["SecretId"] == "test/shared"
        assert json.loads(call_args["SecretString"]) == {
            "host.master": "M2",
            "functions.fn1.default": "F1",
        }

    @pytest.mark.asyncio
    async def test_delete_set_uses_recovery_window(self, store, mock_client):
        await store.delete_set("fn1")

        mock_client.delete_secret.assert_called_once_with(
            SecretId="test/fn1", RecoveryWindowInDays=7
        )

    @pytest.mark.asyncio
    async def test_delete_missing_set_is_ignored(self, store, mock_client):
        mock_client.delete_secret.side_effect = _client_error(
            "ResourceNotFoundException", "DeleteSecret"
        )

        await store.delete_set("fn1")

    @pytest.mark.asyncio
    async def test_list_sets_strips_prefix(self, store, mock_client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"SecretList": [{"Name": "test/host"}, {"Name": "test/fn2"}]},
            {"SecretList": [{"Name": "test/fn1"}, {"Name": "other/fn3"}]},
        ]
        mock_client.get_paginator.return_value = paginator

        assert await store.list_sets() == ["fn1", "fn2", "host"]

    @pytest.mark.asyncio
    async def test_snapshots_not_supported(self, store):
        with pytest.raises(SnapshotNotSupportedError):
            await store.write_snapshot("host", {})
        with pytest.raises(SnapshotNotSupportedError):
            await store.list_snapshots("host")

    @pytest.mark.asyncio
    async def test_fetch_all_scheduled_for_deletion_reads_as_missing(
        self, store, mock_client
    ):
        mock_client.get_secret_value.side_effect = _scheduled_for_deletion_error()

        with pytest.raises(SecretSetNotFoundError):
            await store.fetch_all("fn1")

    @pytest.mark.asyncio
    async def test_put_all_restores_set_scheduled_for_deletion(
        self, store, mock_client
    ):
        mock_client.get_secret_value.side_effect = _scheduled_for_deletion_error()

        await store.put_all("fn1", {"functions.fn1.b": "2"}, "functions.fn1.")

        mock_client.restore_secret.assert_called_once_with(SecretId="test/fn1")
        call_args = mock_client.put_secret_value.call_args[1]
        assert json.loads(call_args["SecretString"]) == {"functions.fn1.b": "2"}
        mock_client.create_secret.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_invalid_requests_are_unavailable(self, store, mock_client):
        mock_client.get_secret_value.side_effect = _client_error(
            "InvalidRequestException", "GetSecretValue"
        )

        with pytest.raises(StoreUnavailableError):
            await store.fetch_all("fn1")


class FakeSecretsManager:
    """Stateful stand-in for the Secrets Manager client."""

    def __init__(self):
        self.secrets: dict[str, str] = {}
        self.deleted: set[str] = set()

    def _require_active(self, secret_id: str, operation: str) -> None:
        if secret_id not in self.secrets:
            raise _client_error("ResourceNotFoundException", operation)
        if secret_id in self.deleted:
            raise _scheduled_for_deletion_error(operation)

    def get_secret_value(self, SecretId):
        self._require_active(SecretId, "GetSecretValue")
        return {"SecretString": self.secrets[SecretId]}

    def create_secret(self, Name, SecretString, Description=None):
        if Name in self.secrets:
            raise _client_error("ResourceExistsException", "CreateSecret")
        self.secrets[Name] = SecretString

    def put_secret_value(self, SecretId, SecretString):
        self._require_active(SecretId, "PutSecretValue")
        self.secrets[SecretId] = SecretString

    def delete_secret(self, SecretId, RecoveryWindowInDays):
        self._require_active(SecretId, "DeleteSecret")
        self.deleted.add(SecretId)

    def restore_secret(self, SecretId):
        if SecretId not in self.secrets:
            raise _client_error("ResourceNotFoundException", "RestoreSecret")
        self.deleted.discard(SecretId)

    def get_paginator(self, operation):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {
                "SecretList": [
                    {"Name": name}
                    for name in self.secrets
                    if name not in self.deleted
                ]
            }
        ]
        return paginator


@pytest.mark.asyncio
async def test_purged_function_can_be_written_and_read_again(sentinel):
    from hostsecrets.infrastructure.implementations.aws import AWSSecretStore
    from hostsecrets.infrastructure.repositories import SecretsRepository
    from hostsecrets.models.secrets import FunctionSecrets, Key, ScriptSecretsType

    fake = FakeSecretsManager()
    with patch("boto3.client", return_value=fake):
        store = AWSSecretStore(prefix="test")
    repository = SecretsRepository(store, sentinel)
    function = ScriptSecretsType.FUNCTION

    await repository.write(
        function, "fn3", FunctionSecrets(keys=[Key(name="a", value="1")])
    )
    assert await repository.purge_stale(["fn1"]) == ["fn3"]

    with pytest.raises(SecretSetNotFoundError):
        await repository.read(function, "fn3")

    await repository.write(
        function, "fn3", FunctionSecrets(keys=[Key(name="b", value="2")])
    )
    secrets = await repository.read(function, "fn3")

    assert secrets.keys == [Key(name="b", value="2")]
    assert fake.deleted == set()
