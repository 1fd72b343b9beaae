"""Collaborators the core talks to but does not own."""

from workbench.collaborators.editor import (
    BufferEditorView,
    EditorView,
    NullTreeView,
    Selection,
    TreeView,
)
from workbench.collaborators.formatter import (
    FormatResult,
    Formatter,
    PrettierFormatter,
    get_parser_for,
)

__all__ = [
    "BufferEditorView",
    "EditorView",
    "NullTreeView",
    "Selection",
    "TreeView",
    "FormatResult",
    "Formatter",
    "PrettierFormatter",
    "get_parser_for",
]
