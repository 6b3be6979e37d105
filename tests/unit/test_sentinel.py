"""Tests for the file-based sentinel notifier."""

from datetime import UTC, datetime, timedelta

import pytest

from hostsecrets.infrastructure.errors import InvalidArgumentError
from hostsecrets.infrastructure.sentinel import SentinelNotifier
from hostsecrets.models.secrets import ScriptSecretsType

HOST = ScriptSecretsType.HOST
FUNCTION = ScriptSecretsType.FUNCTION


@pytest.mark.asyncio
async def test_current_version_is_none_before_first_write(sentinel):
    assert await sentinel.current_version(HOST) is None
    assert await sentinel.marker(HOST) is None


@pytest.mark.asyncio
async def test_touch_creates_marker_file(sentinel):
    stamp = await sentinel.touch(HOST)

    path = sentinel.sentinel_path(HOST)
    assert path.name == "host.json"
    assert path.exists()
    assert await sentinel.current_version(HOST) == stamp


@pytest.mark.asyncio
async def test_function_scope_uses_function_file(sentinel):
    await sentinel.touch(FUNCTION, "httptrigger")

    marker = await sentinel.marker(FUNCTION, "httptrigger")
    assert marker is not None
    assert marker.scope_path.endswith("httptrigger.json")
    assert await sentinel.current_version(HOST) is None


@pytest.mark.asyncio
async def test_versions_are_non_decreasing(sentinel):
    versions = []
    for _ in range(5):
        await sentinel.touch(HOST)
        versions.append(await sentinel.current_version(HOST))

    assert versions == sorted(versions)


@pytest.mark.asyncio
async def test_touch_never_moves_backwards(sentinel):
    """A marker written by an instance with a faster clock is kept."""
    future = datetime.now(UTC) + timedelta(hours=1)
    sentinel.sentinel_path(HOST).write_text(future.isoformat())

    stamp = await sentinel.touch(HOST)

    assert stamp == future
    assert await sentinel.current_version(HOST) == future


@pytest.mark.asyncio
async def test_is_stale_after_write(sentinel):
    fetched_at = datetime.now(UTC) - timedelta(seconds=1)

    assert not await sentinel.is_stale(HOST, None, fetched_at)

    await sentinel.touch(HOST)

    assert await sentinel.is_stale(HOST, None, fetched_at)


@pytest.mark.asyncio
async def test_tie_counts_as_stale(sentinel):
    stamp = await sentinel.touch(HOST)

    assert await sentinel.is_stale(HOST, None, stamp)
    assert not await sentinel.is_stale(HOST, None, stamp + timedelta(microseconds=1))


@pytest.mark.asyncio
async def test_shared_directory_visible_to_other_instances(temp_dir):
    """Two notifiers over one directory see each other's writes."""
    first = SentinelNotifier(str(temp_dir / "shared"))
    second = SentinelNotifier(str(temp_dir / "shared"))

    stamp = await first.touch(FUNCTION, "queuetrigger")

    assert await second.current_version(FUNCTION, "queuetrigger") == stamp


@pytest.mark.asyncio
async def test_invalid_marker_content_is_treated_as_changed(sentinel):
    sentinel.sentinel_path(HOST).write_text("not a timestamp")
    before = datetime.now(UTC)

    assert await sentinel.is_stale(HOST, None, before)


def test_function_scope_requires_valid_name(sentinel):
    with pytest.raises(InvalidArgumentError):
        sentinel.sentinel_path(FUNCTION, None)
    with pytest.raises(InvalidArgumentError):
        sentinel.sentinel_path(FUNCTION, "bad.name")
    with pytest.raises(InvalidArgumentError):
        sentinel.sentinel_path(FUNCTION, "Host")


def test_sentinel_dir_required():
    with pytest.raises(ValueError):
        SentinelNotifier("")
