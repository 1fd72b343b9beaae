"""Tests for key/value state stores."""

from __future__ import annotations

import pytest
import yaml

from workbench.session.storage import (
    API_KEYS,
    CODE_INDEX,
    WORKSPACE_ROOT,
    MemoryStateStore,
    YamlStateStore,
)


class TestMemoryStateStore:
    """Tests for the in-process store."""

    @pytest.mark.asyncio
    async def test_get_missing(self):
        assert await MemoryStateStore().get(API_KEYS) is None

    @pytest.mark.asyncio
    async def test_put_get_delete(self):
        store = MemoryStateStore()
        await store.put(WORKSPACE_ROOT, "/tmp/project")
        assert await store.get(WORKSPACE_ROOT) == "/tmp/project"
        await store.delete(WORKSPACE_ROOT)
        assert await store.get(WORKSPACE_ROOT) is None

    @pytest.mark.asyncio
    async def test_values_are_copied(self):
        store = MemoryStateStore()
        index = {"files": {"a.js": []}}
        await store.put(CODE_INDEX, index)
        index["files"]["b.js"] = []
        stored = await store.get(CODE_INDEX)
        assert stored == {"files": {"a.js": []}}
        stored["files"].clear()
        assert await store.get(CODE_INDEX) == {"files": {"a.js": []}}

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self):
        store = MemoryStateStore({API_KEYS: "k"})
        await store.delete(WORKSPACE_ROOT)
        assert await store.get(API_KEYS) == "k"


class TestYamlStateStore:
    """Tests for the file-backed store."""

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, tmp_path):
        store = YamlStateStore(tmp_path / "state.yaml")
        assert await store.get(API_KEYS) is None

    @pytest.mark.asyncio
    async def test_put_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.yaml"
        await YamlStateStore(path).put(API_KEYS, "key-one\nkey-two")
        await YamlStateStore(path).put(WORKSPACE_ROOT, "/home/me/project")

        store = YamlStateStore(path)
        assert await store.get(API_KEYS) == "key-one\nkey-two"
        assert await store.get(WORKSPACE_ROOT) == "/home/me/project"

        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert set(data) == {API_KEYS, WORKSPACE_ROOT}

    @pytest.mark.asyncio
    async def test_delete(self, tmp_path):
        store = YamlStateStore(tmp_path / "state.yaml")
        await store.put(WORKSPACE_ROOT, "/x")
        await store.delete(WORKSPACE_ROOT)
        assert await store.get(WORKSPACE_ROOT) is None
        assert not (tmp_path / "state.yaml.tmp").exists()

    @pytest.mark.asyncio
    async def test_invalid_yaml_reads_empty(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("invalid: yaml: :", encoding="utf-8")
        assert await YamlStateStore(path).get(API_KEYS) is None

    @pytest.mark.asyncio
    async def test_nested_values(self, tmp_path):
        store = YamlStateStore(tmp_path / "state.yaml")
        index = {"files": {"src/app.js": [{"type": "function", "name": "main"}]}}
        await store.put(CODE_INDEX, index)
        assert await store.get(CODE_INDEX) == index
