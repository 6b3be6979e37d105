"""Tests for the loguru format and record context."""

import pytest
from loguru import logger

from hostsecrets.config import Settings
from hostsecrets.core.logging import add_trace_id


@pytest.fixture
def formatted():
    """Collect lines rendered with the default log format."""
    lines = []
    handler_id = logger.add(
        lines.append,
        format=Settings().log_format,
        filter=add_trace_id,
        colorize=False,
        level="INFO",
    )
    yield lines
    logger.remove(handler_id)


def test_default_format_shows_scope_and_count(formatted):
    logger.bind(scope="fn3", count=2).info("Wrote 2 secrets")

    assert len(formatted) == 1
    assert "scope=fn3 | count=2 |" in formatted[0]
    assert "trace_id=N/A" in formatted[0]


def test_unbound_context_renders_placeholders(formatted):
    logger.info("Plain message")

    assert "scope=- | count=- |" in formatted[0]
