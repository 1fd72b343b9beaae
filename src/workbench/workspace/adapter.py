"""Sandboxed workspace adapter.

All paths are slash-separated and relative to a single project root.
Resolution walks the path one segment at a time, never honours "." or
".." and refuses anything that ends up outside the root (for example via
a symlink). Blocking filesystem work runs in a worker thread so the event
loop keeps streaming while tools run.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from workbench.config.schema import DEFAULT_IGNORE_DIRS
from workbench.errors import InvalidPathError, NotFoundError, NoWorkspaceError
from workbench.logging import get_logger
from workbench.workspace.tree import EntryKind, FileMatches, SearchMatch, TreeNode, sort_key

log = get_logger("workspace")


class Workspace:
    """Filesystem facade rooted at one project directory.

    The root is assigned explicitly with establish() and cleared with
    clear(); until then every operation raises NoWorkspaceError.
    """

    def __init__(
        self,
        root: str | Path | None = None,
        *,
        ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
    ) -> None:
        self._root: Path | None = None
        self._ignore_dirs = frozenset(ignore_dirs)
        if root is not None:
            self.establish(root)

    # -- root management ---------------------------------------------------

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def is_open(self) -> bool:
        return self._root is not None

    @property
    def name(self) -> str | None:
        return self._root.name if self._root else None

    @property
    def ignore_dirs(self) -> frozenset[str]:
        return self._ignore_dirs

    def establish(self, root: str | Path) -> Path:
        """Make root the project directory.

        Raises:
            NotFoundError: If root is not an existing directory.
        """
        path = Path(root).expanduser().resolve()
        if not path.is_dir():
            raise NotFoundError(f"Project folder '{root}' does not exist or is not a directory.")
        self._root = path
        log.info("Workspace established at %s", path)
        return path

    def clear(self) -> None:
        if self._root is not None:
            log.info("Workspace %s closed", self._root)
        self._root = None

    def _require_root(self) -> Path:
        if self._root is None:
            raise NoWorkspaceError()
        return self._root

    # -- path resolution ---------------------------------------------------

    @staticmethod
    def split(path: str) -> list[str]:
        """Split a workspace path into segments.

        Raises:
            InvalidPathError: If the path is empty or uses "." / "..".
        """
        parts = [p for p in str(path).split("/") if p]
        if not parts:
            raise InvalidPathError("Invalid file path provided.")
        for part in parts:
            if part in (".", ".."):
                raise InvalidPathError(
                    f"Invalid file path '{path}': '{part}' segments are not allowed."
                )
        return parts

    def _not_found(self, path: str, parts: list[str], missing: str) -> NotFoundError:
        message = f"'{missing}' not found while resolving '{path}'."
        if parts[0] == self.name:
            message += (
                f" Paths are relative to the project root; do not include "
                f"the root folder name '{self.name}'."
            )
        return NotFoundError(message)

    def _check_inside(self, root: Path, target: Path, path: str) -> None:
        if not target.resolve().is_relative_to(root):
            raise InvalidPathError(f"Path '{path}' resolves outside the project root.")

    def _walk_parent(self, path: str, parts: list[str], create: bool) -> Path:
        root = self._require_root()
        current = root
        for i, part in enumerate(parts[:-1]):
            current = current / part
            if current.is_dir():
                continue
            if create and not current.exists():
                current.mkdir()
                continue
            raise self._not_found(path, parts, "/".join(parts[: i + 1]))
        self._check_inside(root, current, path)
        return current

    def _resolve_sync(self, path: str, create: bool) -> Path:
        parts = self.split(path)
        parent = self._walk_parent(path, parts, create)
        leaf = parent / parts[-1]
        if not leaf.exists():
            if not create:
                raise self._not_found(path, parts, path)
            leaf.touch()
        self._check_inside(self._require_root(), leaf, path)
        return leaf

    async def resolve(self, path: str, *, create: bool = False) -> Path:
        """Walk path against the root and return the absolute leaf path.

        With create=True missing directories and the leaf file are created.

        Raises:
            NoWorkspaceError: No root established.
            InvalidPathError: Empty path, "."/".." segments, or escape attempt.
            NotFoundError: A segment is missing and create is False.
        """
        return await asyncio.to_thread(self._resolve_sync, path, create)

    def relative(self, target: Path) -> str:
        """Workspace-relative, slash-separated form of an absolute path."""
        return target.relative_to(self._require_root()).as_posix()

    # -- file operations ---------------------------------------------------

    def _read_sync(self, path: str) -> str:
        leaf = self._resolve_sync(path, create=False)
        if leaf.is_dir():
            raise InvalidPathError(f"'{path}' is a directory, not a file.")
        with open(leaf, encoding="utf-8", newline="") as f:
            return f.read()

    async def read(self, path: str) -> str:
        """Return the full text content of a file."""
        return await asyncio.to_thread(self._read_sync, path)

    def _write_sync(self, path: str, content: str, create: bool) -> None:
        parts = self.split(path)
        parent = self._walk_parent(path, parts, create)
        leaf = parent / parts[-1]
        if leaf.is_dir():
            raise InvalidPathError(f"'{path}' is a directory, not a file.")
        if not leaf.exists() and not create:
            raise self._not_found(path, parts, path)
        self._check_inside(self._require_root(), leaf, path)

        # Write to a sibling temp file and swap it in so readers never see
        # a half-written file.
        fd, temp_name = tempfile.mkstemp(dir=parent, prefix=f".{leaf.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(temp_name, leaf)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

    async def write(self, path: str, content: str, *, create: bool = False) -> None:
        """Overwrite (or, with create=True, create) a file atomically."""
        await asyncio.to_thread(self._write_sync, path, content, create)
        log.debug("Wrote %d chars to %s", len(content), path)

    def _remove_sync(self, path: str) -> None:
        leaf = self._resolve_sync(path, create=False)
        if leaf.is_dir() and not leaf.is_symlink():
            leaf.rmdir()
        else:
            leaf.unlink()

    async def remove(self, path: str) -> None:
        """Delete the leaf entry (a file or an empty directory)."""
        await asyncio.to_thread(self._remove_sync, path)
        log.debug("Removed %s", path)

    # -- traversal ---------------------------------------------------------

    def _scan(self, directory: Path) -> list[os.DirEntry[str]]:
        with os.scandir(directory) as it:
            entries = [
                e for e in it
                if not (e.is_dir(follow_symlinks=False) and e.name in self._ignore_dirs)
            ]
        return sorted(entries, key=lambda e: (0 if e.is_dir(follow_symlinks=False) else 1, e.name))

    def _build_tree(self, directory: Path) -> TreeNode:
        node = TreeNode(name=directory.name, kind=EntryKind.DIRECTORY)
        for entry in self._scan(directory):
            if entry.is_dir(follow_symlinks=False):
                node.children.append(self._build_tree(Path(entry.path)))
            else:
                node.children.append(TreeNode(name=entry.name, kind=EntryKind.FILE))
        node.children.sort(key=sort_key)
        return node

    def _start_dir(self, path: str) -> Path:
        root = self._require_root()
        if not path or path.strip("/") == "":
            return root
        start = self._resolve_sync(path, create=False)
        if not start.is_dir():
            raise InvalidPathError(f"'{path}' is not a directory.")
        return start

    def _list_tree_sync(self, path: str) -> TreeNode:
        return self._build_tree(self._start_dir(path))

    async def list_tree(self, path: str = "") -> TreeNode:
        """Build the directory tree under path (default: the root).

        Ignored directories (VCS metadata, dependency caches, build output)
        are pruned while walking, so their contents are never visited.
        """
        return await asyncio.to_thread(self._list_tree_sync, path)

    def walk_files(self, path: str = "") -> Iterator[tuple[str, Path]]:
        """Yield (relative path, absolute path) for every file, depth first."""
        start = self._start_dir(path)
        root = self._require_root()
        stack = [start]
        while stack:
            directory = stack.pop()
            subdirs = []
            for entry in self._scan(directory):
                entry_path = Path(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry_path)
                elif entry.is_file():
                    yield entry_path.relative_to(root).as_posix(), entry_path
            stack.extend(reversed(subdirs))

    def _search_sync(self, term: str) -> list[FileMatches]:
        needle = term.lower()
        results: list[FileMatches] = []
        for rel_path, abs_path in self.walk_files():
            try:
                content = abs_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Could not read file %s: %s", rel_path, e)
                continue
            matches = [
                SearchMatch(line_number=i, line_text=line.strip())
                for i, line in enumerate(content.split("\n"), start=1)
                if needle in line.lower()
            ]
            if matches:
                results.append(FileMatches(file=rel_path, matches=matches))
        return results

    async def search(self, term: str) -> list[FileMatches]:
        """Case-insensitive substring search over every readable file."""
        return await asyncio.to_thread(self._search_sync, term)
