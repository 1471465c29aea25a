"""Shared fixtures for the fintrack test suite."""

import pytest

from fintrack.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test sees settings built from its own environment."""
    monkeypatch.setenv("FINTRACK_CONCURRENCY_CONFLICT_RETRY_WAIT_SECONDS", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
