"""Tests for the regex code index."""

from __future__ import annotations

import pytest

from workbench.errors import NoWorkspaceError
from workbench.tools.code_index import (
    CodeIndex,
    Definition,
    DefinitionKind,
    build_index,
    parse_definitions,
    query_index,
)
from workbench.workspace import Workspace

JS_SOURCE = """\
function renderList(items) {
  // TODO: paginate
}
const fetchItems = async (url) => {
  return fetch(url);
};
const add = (a, b) => a + b;
class ListView extends Base {}
"""


class TestParseDefinitions:
    """Pattern passes over a single file."""

    def test_javascript(self):
        defs = parse_definitions(JS_SOURCE)
        assert Definition(DefinitionKind.FUNCTION, "renderList") in defs
        assert Definition(DefinitionKind.FUNCTION, "fetchItems") in defs
        assert Definition(DefinitionKind.FUNCTION, "add") in defs
        assert Definition(DefinitionKind.CLASS, "ListView") in defs
        assert Definition(DefinitionKind.TODO, "paginate") in defs

    def test_python(self):
        defs = parse_definitions("class Parser:\n    def feed(self, data):\n        # TODO: handle eof\n")
        assert defs == [
            Definition(DefinitionKind.FUNCTION, "feed"),
            Definition(DefinitionKind.CLASS, "Parser"),
            Definition(DefinitionKind.TODO, "handle eof"),
        ]

    def test_pattern_order(self):
        """Each pattern is a separate pass, so functions come before classes."""
        defs = parse_definitions("class A {}\nfunction b() {}\n")
        assert [d.kind for d in defs] == [DefinitionKind.FUNCTION, DefinitionKind.CLASS]

    def test_empty(self):
        assert parse_definitions("") == []


class TestSerialization:
    """Index dict form as kept in the state store."""

    def test_to_dict(self):
        index = CodeIndex({"a.js": [
            Definition(DefinitionKind.FUNCTION, "main"),
            Definition(DefinitionKind.TODO, "fix"),
        ]})
        assert index.to_dict() == {
            "files": {"a.js": [
                {"type": "function", "name": "main"},
                {"type": "todo", "content": "fix"},
            ]}
        }

    def test_from_dict_reverses_to_dict(self):
        index = CodeIndex({"a.js": [
            Definition(DefinitionKind.CLASS, "App"),
            Definition(DefinitionKind.TODO, "later"),
        ]})
        assert CodeIndex.from_dict(index.to_dict()) == index

    def test_len(self):
        index = CodeIndex({"a": [Definition(DefinitionKind.CLASS, "A")], "b": []})
        assert len(index) == 1


class TestQueryIndex:
    """Substring lookup over definition names."""

    @pytest.fixture
    def index(self):
        return CodeIndex({
            "src/list.js": [
                Definition(DefinitionKind.FUNCTION, "renderList"),
                Definition(DefinitionKind.CLASS, "ListView"),
            ],
            "src/app.py": [Definition(DefinitionKind.FUNCTION, "main")],
        })

    def test_case_insensitive(self, index):
        assert query_index(index, "LIST") == [
            {"file": "src/list.js", "type": "function", "name": "renderList"},
            {"file": "src/list.js", "type": "class", "name": "ListView"},
        ]

    def test_no_match(self, index):
        assert query_index(index, "zzz") == []


class TestBuildIndex:
    """Indexing a workspace."""

    @pytest.mark.asyncio
    async def test_build(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "src" / "list.js").write_text(JS_SOURCE)
        (tmp_path / "src" / "notes.txt").write_text("function ignored() {}\n")
        (tmp_path / "node_modules" / "dep.js").write_text("function dep() {}\n")
        (tmp_path / "Makefile").write_text("all:\n")

        index = await build_index(Workspace(tmp_path))
        assert list(index.files) == ["src/list.js"]
        assert {"file": "src/list.js", "type": "function", "name": "renderList"} in query_index(index, "render")

    @pytest.mark.asyncio
    async def test_custom_extensions(self, tmp_path):
        (tmp_path / "notes.txt").write_text("class Note\n")
        index = await build_index(Workspace(tmp_path), ["txt"])
        assert index.files == {"notes.txt": [Definition(DefinitionKind.CLASS, "Note")]}

    @pytest.mark.asyncio
    async def test_requires_workspace(self):
        with pytest.raises(NoWorkspaceError):
            await build_index(Workspace())
