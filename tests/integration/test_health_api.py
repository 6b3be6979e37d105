"""Tests for health check endpoints."""

from fastapi import status

from hostsecrets import __version__
from hostsecrets.infrastructure.repositories import SecretsRepository
from hostsecrets.services.secret_manager import SecretManager


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["secrets_store"] == "local"
    assert data["encryption_supported"] is False


def test_health_check_needs_no_key(client):
    """Health is public even though admin routes require the master key."""
    assert client.get("/health").status_code == status.HTTP_200_OK
    assert client.get("/admin/host/keys").status_code == status.HTTP_401_UNAUTHORIZED


def test_health_reports_store_capabilities(make_client, local_manager, store_factory):
    sentinel = local_manager.sentinel
    store = store_factory(supports_encryption=True)
    client = make_client(SecretManager(SecretsRepository(store, sentinel), sentinel))

    data = client.get("/health").json()

    assert data["secrets_store"] == "memory"
    assert data["encryption_supported"] is True
