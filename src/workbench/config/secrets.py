"""Secret management for Workbench.

API keys are looked up in the environment first and then in a cached
.env.secrets file, so tests can clear them with monkeypatch.delenv().
"""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

SECRETS_FILE = ".env.secrets"
API_KEYS_VAR = "WB_API_KEYS"

_KEY_SEPARATORS = re.compile(r"[\n,]")


@lru_cache(maxsize=1)
def _load_secrets(secrets_path: Path | None = None) -> dict[str, str | None]:
    """Load and cache the .env.secrets file."""
    path = secrets_path or Path(SECRETS_FILE)
    if path.exists():
        return dotenv_values(path)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Fetch a secret from the environment or .env.secrets.

    Example:
        >>> fetch_secret("WB_API_KEYS")
        'AIza...'
    """
    value = os.environ.get(key)
    if value is not None:
        return value

    secrets = _load_secrets(secrets_path)
    if secrets.get(key) is not None:
        return secrets[key]

    return default


def parse_api_keys(text: str | None) -> list[str]:
    """Split a newline (or comma) separated key list, dropping blanks."""
    if not text:
        return []
    return [k.strip() for k in _KEY_SEPARATORS.split(text) if k.strip()]


def load_api_keys(secrets_path: Path | None = None) -> list[str]:
    """Read the API key list from WB_API_KEYS."""
    return parse_api_keys(fetch_secret(API_KEYS_VAR, secrets_path=secrets_path))


def clear_secret_cache() -> None:
    """Clear the secrets cache (after .env.secrets changed, or in tests)."""
    _load_secrets.cache_clear()
