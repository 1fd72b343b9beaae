"""Lightweight code index.

A rough outline of the project built from regular expressions: function
and class declarations plus TODO markers, per file. Each pattern is an
independent pass over the whole file, so overlapping matches show up more
than once. The index is rebuilt wholesale on request and is not kept in
sync with later edits.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from workbench.config.schema import DEFAULT_INDEX_EXTENSIONS
from workbench.logging import get_logger

if TYPE_CHECKING:
    from workbench.workspace.adapter import Workspace

log = get_logger("index")


class DefinitionKind(Enum):
    FUNCTION = "function"
    CLASS = "class"
    TODO = "todo"


# (kind, pattern); group 1 is the name, or the marker text for TODOs.
PATTERNS: tuple[tuple[DefinitionKind, re.Pattern[str]], ...] = (
    (DefinitionKind.FUNCTION, re.compile(r"function\s+([a-zA-Z0-9_]+)\s*\(")),
    (
        DefinitionKind.FUNCTION,
        re.compile(r"const\s+([a-zA-Z0-9_]+)\s*=\s*(?:\(.*\)|async\s*\(.*\))\s*=>"),
    ),
    (DefinitionKind.FUNCTION, re.compile(r"def\s+([a-zA-Z0-9_]+)\s*\(")),
    (DefinitionKind.CLASS, re.compile(r"class\s+([a-zA-Z0-9_]+)")),
    (DefinitionKind.TODO, re.compile(r"//\s*TODO:(.*)")),
    (DefinitionKind.TODO, re.compile(r"#\s*TODO:(.*)")),
)


@dataclass(slots=True)
class Definition:
    """A definition record. TODO entries carry their text in ``name``."""

    kind: DefinitionKind
    name: str

    def to_dict(self) -> dict[str, str]:
        if self.kind is DefinitionKind.TODO:
            return {"type": self.kind.value, "content": self.name}
        return {"type": self.kind.value, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Definition:
        return cls(
            kind=DefinitionKind(data["type"]),
            name=str(data.get("name") or data.get("content") or ""),
        )


@dataclass
class CodeIndex:
    """Mapping of workspace-relative file path to its definitions."""

    files: dict[str, list[Definition]] = field(default_factory=dict)

    def __len__(self) -> int:
        return sum(len(defs) for defs in self.files.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": {
                path: [d.to_dict() for d in defs] for path, defs in self.files.items()
            }
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CodeIndex:
        files = data.get("files") or {}
        return cls(
            files={
                path: [Definition.from_dict(d) for d in defs or []]
                for path, defs in files.items()
            }
        )


def parse_definitions(content: str) -> list[Definition]:
    """Extract definitions from file content, one pass per pattern."""
    definitions: list[Definition] = []
    for kind, pattern in PATTERNS:
        for match in pattern.finditer(content):
            text = match.group(1)
            definitions.append(Definition(kind, text.strip() if kind is DefinitionKind.TODO else text))
    return definitions


def _has_extension(path: str, extensions: frozenset[str]) -> bool:
    _, dot, ext = path.rpartition(".")
    return bool(dot) and ext in extensions


def _build_sync(workspace: Workspace, extensions: frozenset[str]) -> CodeIndex:
    index = CodeIndex()
    for rel_path, abs_path in workspace.walk_files():
        if not _has_extension(rel_path, extensions):
            continue
        try:
            content = abs_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Could not index file %s: %s", rel_path, e)
            continue
        index.files[rel_path] = parse_definitions(content)
    return index


async def build_index(
    workspace: Workspace,
    extensions: Iterable[str] = DEFAULT_INDEX_EXTENSIONS,
) -> CodeIndex:
    """Index every file under the workspace root with an allowed extension.

    Ignored directories are pruned by the workspace walk.

    Raises:
        NoWorkspaceError: If no workspace root is established.
    """
    index = await asyncio.to_thread(_build_sync, workspace, frozenset(extensions))
    log.info("Indexed %d definitions in %d files", len(index), len(index.files))
    return index


def query_index(index: CodeIndex, query: str) -> list[dict[str, str]]:
    """Case-insensitive substring match over definition names.

    Results follow file order, then definition order; no ranking.
    """
    needle = query.lower()
    return [
        {"file": path, "type": d.kind.value, "name": d.name}
        for path, defs in index.files.items()
        for d in defs
        if needle in d.name.lower()
    ]
