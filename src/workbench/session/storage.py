"""Key/value state persistence.

Workbench keeps three values across runs: the API key list, the last
workspace root and the built code index. The store is a plain async map;
the YAML implementation writes to a single file such as:

  ~/.wb/state.yaml

  api_keys: |-
    key-one
    key-two
  workspace_root: /home/me/project
  code_index:
    files:
      src/app.js:
        - {type: function, name: main}
"""

from __future__ import annotations

import asyncio
import copy
from pathlib import Path
from typing import Any, Protocol

import yaml

from workbench.logging import get_logger

log = get_logger("storage")

API_KEYS = "api_keys"
WORKSPACE_ROOT = "workspace_root"
CODE_INDEX = "code_index"


class StateStore(Protocol):
    """Async key/value store owned outside the turn loop."""

    async def get(self, key: str) -> Any | None: ...

    async def put(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStateStore:
    """In-process store, used by tests and as a fallback."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class YamlStateStore:
    """Store backed by one YAML file, written atomically on every put."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            log.warning("Invalid YAML in state file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
            temp_path.replace(self._path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise
        log.debug("Saved state to %s", self._path)

    async def get(self, key: str) -> Any | None:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def put(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key in data:
                del data[key]
                await asyncio.to_thread(self._write, data)
