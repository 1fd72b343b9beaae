"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from workbench.config import clear_secret_cache, reset_config

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep user keys and cached config out of every test."""
    monkeypatch.delenv("WB_API_KEYS", raising=False)
    monkeypatch.delenv("WB_MODEL", raising=False)
    clear_secret_cache()
    reset_config()
    yield
    clear_secret_cache()
    reset_config()
