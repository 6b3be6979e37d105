"""Tests for the read-only Kubernetes secret store."""

import base64

import httpx
import pytest
import respx

from hostsecrets.infrastructure.errors import (
    SecretSetNotFoundError,
    StoreUnavailableError,
    WriteNotSupportedError,
)
from hostsecrets.infrastructure.implementations.kubernetes import (
    KubernetesSecretStore,
)

API_URL = "https://k8s.test"
SECRET_URL = f"{API_URL}/api/v1/namespaces/functions/secrets/function-host-keys"


def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


@pytest.fixture
def service_account(temp_dir):
    """Mounted service account directory with token and namespace."""
    path = temp_dir / "serviceaccount"
    path.mkdir()
    (path / "token").write_text("test-token\n")
    (path / "namespace").write_text("functions\n")
    return path


@pytest.fixture
def store(service_account):
    return KubernetesSecretStore(
        api_url=API_URL, service_account_path=str(service_account)
    )


def test_namespace_read_from_service_account(store):
    assert store.namespace == "functions"
    assert store.supports_purge is False
    assert store.write_semantics == "read-only"


def test_namespace_required(temp_dir):
    with pytest.raises(ValueError):
        KubernetesSecretStore(api_url=API_URL, service_account_path=str(temp_dir))


@respx.mock
@pytest.mark.asyncio
async def test_fetch_all_decodes_data(store):
    route = respx.get(SECRET_URL).mock(
        return_value=httpx.Response(
            200,
            json={
                "kind": "Secret",
                "data": {
                    "host.master": _b64("M1"),
                    "functions.fn1.default": _b64("F1"),
                },
            },
        )
    )

    pairs = await store.fetch_all("function-host-keys")

    assert pairs == {"host.master": "M1", "functions.fn1.default": "F1"}
    assert route.calls.last.request.headers["Authorization"] == "Bearer test-token"


@respx.mock
@pytest.mark.asyncio
async def test_fetch_all_skips_undecodable_values(store):
    respx.get(SECRET_URL).mock(
        return_value=httpx.Response(
            200, json={"data": {"host.master": _b64("M1"), "host.functions.bad": "/w=="}}
        )
    )

    assert await store.fetch_all("function-host-keys") == {"host.master": "M1"}


@respx.mock
@pytest.mark.asyncio
async def test_fetch_all_empty_secret(store):
    respx.get(SECRET_URL).mock(return_value=httpx.Response(200, json={"kind": "Secret"}))

    assert await store.fetch_all("function-host-keys") == {}


@respx.mock
@pytest.mark.asyncio
async def test_fetch_all_not_found(store):
    respx.get(SECRET_URL).mock(return_value=httpx.Response(404, json={}))

    with pytest.raises(SecretSetNotFoundError):
        await store.fetch_all("function-host-keys")


@respx.mock
@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 403, 500])
async def test_fetch_all_error_status(store, status_code):
    respx.get(SECRET_URL).mock(return_value=httpx.Response(status_code, json={}))

    with pytest.raises(StoreUnavailableError):
        await store.fetch_all("function-host-keys")


@respx.mock
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>proxy error</html>"),
        httpx.Response(200, json={"data": ["not", "a", "map"]}),
    ],
)
async def test_fetch_all_malformed_body(store, response):
    respx.get(SECRET_URL).mock(return_value=response)

    with pytest.raises(StoreUnavailableError):
        await store.fetch_all("function-host-keys")


@respx.mock
@pytest.mark.asyncio
async def test_fetch_all_network_error(store):
    respx.get(SECRET_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(StoreUnavailableError):
        await store.fetch_all("function-host-keys")


@pytest.mark.asyncio
async def test_writes_not_supported(store):
    with pytest.raises(WriteNotSupportedError):
        await store.put_all("function-host-keys", {"host.master": "M2"}, "host.")
    with pytest.raises(WriteNotSupportedError):
        await store.delete_set("function-host-keys")
