"""Project tree structures and their text rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EntryKind(Enum):
    """Kind of a workspace entry."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(slots=True)
class TreeNode:
    """A file or a directory with its (already pruned) children."""

    name: str
    kind: EntryKind
    children: list[TreeNode] = field(default_factory=list)

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "kind": self.kind.value}
        if self.is_dir:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@dataclass(slots=True)
class SearchMatch:
    """One matching line of a file (1-based line number, trimmed text)."""

    line_number: int
    line_text: str

    def to_dict(self) -> dict[str, Any]:
        return {"line_number": self.line_number, "line_content": self.line_text}


@dataclass(slots=True)
class FileMatches:
    """All matching lines of a single file, in line order."""

    file: str
    matches: list[SearchMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "matches": [m.to_dict() for m in self.matches]}


def sort_key(node: TreeNode) -> tuple[int, str]:
    """Directories first, then by name."""
    return (0 if node.is_dir else 1, node.name)


def format_tree(node: TreeNode) -> str:
    """Render a tree with box-drawing connectors.

    Example:
        project
        ├── src
        │   └── app.js
        └── README.md
    """
    lines = [node.name]
    _format_children(node, "", lines)
    return "\n".join(lines) + "\n"


def _format_children(node: TreeNode, prefix: str, lines: list[str]) -> None:
    count = len(node.children)
    for i, child in enumerate(node.children):
        is_last = i == count - 1
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{child.name}")
        if child.is_dir:
            _format_children(child, prefix + ("    " if is_last else "│   "), lines)
