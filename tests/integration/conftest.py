"""Fixtures for API integration tests."""

import pytest
from fastapi.testclient import TestClient

from hostsecrets.application import create_app
from hostsecrets.di import get_secret_manager
from hostsecrets.infrastructure.implementations.local import LocalSecretStore
from hostsecrets.infrastructure.repositories import SecretsRepository
from hostsecrets.infrastructure.sentinel import SentinelNotifier
from hostsecrets.services.secret_manager import SecretManager

@pytest.fixture
def master_key():
    return "test-master-key-0123456789"


@pytest.fixture
def local_manager(temp_dir, master_key):
    """Secret manager over a local store with a provisioned master key."""
    store = LocalSecretStore(base_dir=str(temp_dir / "secrets"))
    (store.base_dir / "host.json").write_text(f'{{"host.master": "{master_key}"}}')
    sentinel = SentinelNotifier(str(temp_dir / "sentinels"))
    return SecretManager(SecretsRepository(store, sentinel), sentinel)


@pytest.fixture
def make_client():
    """Build a test client serving a given secret manager."""
    clients = []

    def _make(manager: SecretManager) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_secret_manager] = lambda: manager
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, local_manager):
    """Test client over the local store."""
    return make_client(local_manager)


@pytest.fixture
def admin_headers(master_key):
    return {"x-functions-key": master_key}
