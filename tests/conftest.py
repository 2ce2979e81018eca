"""Shared test fixtures for the canonmark test suite."""

from __future__ import annotations

import io

import pytest

from canonmark.config import FormatterConfig, NotionConfig


@pytest.fixture
def config() -> FormatterConfig:
    """Default formatter configuration."""
    return FormatterConfig()


@pytest.fixture
def notion_config() -> NotionConfig:
    """Notion configuration with a dummy token and no retry delays."""
    return NotionConfig(
        token="test-token-1234",
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
    )


@pytest.fixture
def sink() -> io.BytesIO:
    """An in-memory byte sink."""
    return io.BytesIO()
