"""Sandboxed project workspace: path resolution, file I/O, tree and search."""

from workbench.workspace.adapter import Workspace
from workbench.workspace.tree import (
    EntryKind,
    FileMatches,
    SearchMatch,
    TreeNode,
    format_tree,
)

__all__ = [
    "Workspace",
    "EntryKind",
    "FileMatches",
    "SearchMatch",
    "TreeNode",
    "format_tree",
]
