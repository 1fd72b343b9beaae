"""Tests for the sandboxed workspace adapter."""

from __future__ import annotations

import os
import sys

import pytest

from workbench.errors import InvalidPathError, NotFoundError, NoWorkspaceError
from workbench.workspace import EntryKind, TreeNode, Workspace, format_tree


@pytest.fixture
def project(tmp_path):
    """A small project with an ignored directory."""
    root = tmp_path / "project"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "src" / "app.js").write_text("function main() {\n  // TODO: wire up\n}\n")
    (root / "src" / "lib" / "util.py").write_text("def helper():\n    return 'Main'\n")
    (root / "README.md").write_text("# Project\nRun main to start.\n")
    (root / "node_modules" / "pkg" / "index.js").write_text("main()\n")
    return root


@pytest.fixture
def ws(project):
    return Workspace(project)


class TestRoot:
    """Establishing and clearing the project root."""

    def test_no_root(self):
        ws = Workspace()
        assert ws.root is None
        assert not ws.is_open
        assert ws.name is None

    @pytest.mark.asyncio
    async def test_operations_require_root(self):
        ws = Workspace()
        with pytest.raises(NoWorkspaceError):
            await ws.read("a.txt")
        with pytest.raises(NoWorkspaceError):
            await ws.list_tree()
        with pytest.raises(NoWorkspaceError):
            await ws.search("x")

    def test_establish_missing_dir(self, tmp_path):
        with pytest.raises(NotFoundError):
            Workspace().establish(tmp_path / "missing")

    def test_establish_file(self, project):
        with pytest.raises(NotFoundError):
            Workspace().establish(project / "README.md")

    def test_establish_and_clear(self, project):
        ws = Workspace()
        assert ws.establish(project) == project.resolve()
        assert ws.name == "project"
        ws.clear()
        assert ws.root is None


class TestPathResolution:
    """Segment-by-segment resolution inside the root."""

    @pytest.mark.parametrize("path", ["", "/", "//"])
    def test_empty_path(self, path):
        with pytest.raises(InvalidPathError, match="Invalid file path provided."):
            Workspace.split(path)

    @pytest.mark.parametrize("path", ["../etc/passwd", "src/../../x", "./src"])
    def test_dot_segments_rejected(self, path):
        with pytest.raises(InvalidPathError):
            Workspace.split(path)

    def test_split_ignores_extra_slashes(self):
        assert Workspace.split("/src//app.js/") == ["src", "app.js"]

    @pytest.mark.asyncio
    async def test_resolve_file(self, ws, project):
        assert await ws.resolve("src/app.js") == project.resolve() / "src" / "app.js"

    @pytest.mark.asyncio
    async def test_missing_segment(self, ws):
        with pytest.raises(NotFoundError, match="'src/missing' not found"):
            await ws.resolve("src/missing/file.js")

    @pytest.mark.asyncio
    async def test_missing_leaf(self, ws):
        with pytest.raises(NotFoundError):
            await ws.resolve("src/nope.js")

    @pytest.mark.asyncio
    async def test_root_name_hint(self, ws):
        with pytest.raises(NotFoundError, match="do not include the root folder name"):
            await ws.resolve("project/src/app.js")

    @pytest.mark.asyncio
    async def test_create_makes_parents(self, ws, project):
        leaf = await ws.resolve("new/deep/file.txt", create=True)
        assert leaf.exists()
        assert (project / "new" / "deep").is_dir()

    @pytest.mark.asyncio
    async def test_segment_is_file(self, ws):
        with pytest.raises(NotFoundError):
            await ws.resolve("README.md/child", create=True)

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    @pytest.mark.asyncio
    async def test_symlink_escape(self, ws, project, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("secret")
        os.symlink(outside, project / "link")
        with pytest.raises(InvalidPathError, match="outside the project root"):
            await ws.read("link/secret.txt")

    def test_relative(self, ws, project):
        assert ws.relative(project.resolve() / "src" / "app.js") == "src/app.js"


class TestFileOperations:
    """Reading, writing and removing files."""

    @pytest.mark.asyncio
    async def test_read(self, ws):
        assert (await ws.read("README.md")).startswith("# Project")

    @pytest.mark.asyncio
    async def test_read_preserves_crlf(self, ws, project):
        (project / "dos.txt").write_bytes(b"a\r\nb\r\n")
        assert await ws.read("dos.txt") == "a\r\nb\r\n"

    @pytest.mark.asyncio
    async def test_read_directory(self, ws):
        with pytest.raises(InvalidPathError):
            await ws.read("src")

    @pytest.mark.asyncio
    async def test_write_existing(self, ws, project):
        await ws.write("README.md", "changed")
        assert (project / "README.md").read_text() == "changed"
        assert not [p for p in project.iterdir() if p.name.endswith(".tmp")]

    @pytest.mark.asyncio
    async def test_write_missing_without_create(self, ws):
        with pytest.raises(NotFoundError):
            await ws.write("missing.txt", "x")

    @pytest.mark.asyncio
    async def test_write_create(self, ws, project):
        await ws.write("docs/guide.md", "# Guide", create=True)
        assert (project / "docs" / "guide.md").read_text() == "# Guide"

    @pytest.mark.asyncio
    async def test_remove_file(self, ws, project):
        await ws.remove("src/app.js")
        assert not (project / "src" / "app.js").exists()

    @pytest.mark.asyncio
    async def test_remove_empty_dir(self, ws, project):
        (project / "empty").mkdir()
        await ws.remove("empty")
        assert not (project / "empty").exists()

    @pytest.mark.asyncio
    async def test_remove_missing(self, ws):
        with pytest.raises(NotFoundError):
            await ws.remove("gone.txt")


class TestTraversal:
    """Tree listing, file walking and search."""

    @pytest.mark.asyncio
    async def test_list_tree_prunes_ignored(self, ws):
        tree = await ws.list_tree()
        assert tree.name == "project"
        assert [c.name for c in tree.children] == ["src", "README.md"]
        src = tree.children[0]
        assert src.kind is EntryKind.DIRECTORY
        assert [c.name for c in src.children] == ["lib", "app.js"]

    @pytest.mark.asyncio
    async def test_list_subtree(self, ws):
        tree = await ws.list_tree("src/lib")
        assert tree.name == "lib"
        assert [c.name for c in tree.children] == ["util.py"]

    @pytest.mark.asyncio
    async def test_list_tree_of_file(self, ws):
        with pytest.raises(InvalidPathError):
            await ws.list_tree("README.md")

    def test_walk_files(self, ws):
        files = [rel for rel, _ in ws.walk_files()]
        assert sorted(files) == ["README.md", "src/app.js", "src/lib/util.py"]

    @pytest.mark.asyncio
    async def test_search_case_insensitive(self, ws):
        results = await ws.search("MAIN")
        by_file = {r.file: r for r in results}
        assert set(by_file) == {"README.md", "src/app.js", "src/lib/util.py"}
        assert by_file["src/app.js"].matches[0].line_number == 1
        assert by_file["src/app.js"].matches[0].line_text == "function main() {"
        assert by_file["src/lib/util.py"].matches[0].line_text == "return 'Main'"

    @pytest.mark.asyncio
    async def test_search_no_match(self, ws):
        assert await ws.search("zzz-not-here") == []

    @pytest.mark.asyncio
    async def test_search_skips_binary(self, ws, project):
        (project / "blob.bin").write_bytes(b"\xff\xfe\x00main")
        results = await ws.search("main")
        assert "blob.bin" not in {r.file for r in results}

    @pytest.mark.asyncio
    async def test_search_to_dict(self, ws):
        results = await ws.search("TODO")
        assert [r.to_dict() for r in results] == [
            {"file": "src/app.js", "matches": [{"line_number": 2, "line_content": "// TODO: wire up"}]}
        ]


class TestFormatTree:
    """Text rendering of trees."""

    def test_format(self):
        tree = TreeNode("project", EntryKind.DIRECTORY, [
            TreeNode("src", EntryKind.DIRECTORY, [
                TreeNode("lib", EntryKind.DIRECTORY, [TreeNode("util.py", EntryKind.FILE)]),
                TreeNode("app.js", EntryKind.FILE),
            ]),
            TreeNode("README.md", EntryKind.FILE),
        ])
        assert format_tree(tree) == (
            "project\n"
            "├── src\n"
            "│   ├── lib\n"
            "│   │   └── util.py\n"
            "│   └── app.js\n"
            "└── README.md\n"
        )

    def test_empty_dir(self):
        assert format_tree(TreeNode("empty", EntryKind.DIRECTORY)) == "empty\n"

    def test_to_dict(self):
        node = TreeNode("a", EntryKind.DIRECTORY, [TreeNode("b.txt", EntryKind.FILE)])
        assert node.to_dict() == {
            "name": "a",
            "kind": "directory",
            "children": [{"name": "b.txt", "kind": "file"}],
        }
