"""Editor and file-tree views.

The core never owns editor documents or the rendered file tree. It reads
the active buffer and selection through EditorView and sends
notifications after file mutations. BufferEditorView is an in-memory
implementation used by the CLI and tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from workbench.logging import get_logger

log = get_logger("editor")


@dataclass(frozen=True, slots=True)
class Selection:
    """Character range [start, end) in the active buffer."""

    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start


class EditorView(Protocol):
    """What the tool dispatcher needs from an editor."""

    def active_file(self) -> tuple[str, str] | None:
        """(path, content) of the active buffer, or None."""
        ...

    def get_selection(self) -> Selection | None: ...

    def get_value_in_range(self, selection: Selection) -> str: ...

    def execute_edits(self, selection: Selection, text: str) -> None: ...

    def file_changed(self, path: str, content: str) -> None:
        """Push new content into the buffer for path, if it is open."""
        ...

    def file_removed(self, path: str) -> None:
        """Close the buffer for path, if it is open."""
        ...


class TreeView(Protocol):
    def refresh(self) -> None: ...


class NullTreeView:
    """Tree view that renders nothing."""

    def refresh(self) -> None:
        pass


class BufferEditorView:
    """Open files kept as strings, one of them active."""

    def __init__(self) -> None:
        self._buffers: dict[str, str] = {}
        self._active: str | None = None
        self._selection: Selection | None = None

    @property
    def open_files(self) -> list[str]:
        return list(self._buffers)

    @property
    def active_path(self) -> str | None:
        return self._active

    def open(self, path: str, content: str) -> None:
        """Open (or re-open) a buffer and make it active."""
        self._buffers[path] = content
        self._active = path
        self._selection = None

    def close(self, path: str) -> None:
        if self._buffers.pop(path, None) is None:
            return
        if self._active == path:
            self._active = next(iter(self._buffers), None)
            self._selection = None

    def content(self, path: str) -> str | None:
        return self._buffers.get(path)

    def select(self, start: int, end: int) -> Selection:
        """Select a character range of the active buffer (clamped)."""
        if self._active is None:
            raise ValueError("No file is open.")
        size = len(self._buffers[self._active])
        start = max(0, min(start, size))
        end = max(start, min(end, size))
        self._selection = Selection(start, end)
        return self._selection

    def select_lines(self, first: int, last: int) -> Selection:
        """Select whole lines first..last (1-based, inclusive)."""
        if self._active is None:
            raise ValueError("No file is open.")
        lines = self._buffers[self._active].splitlines(keepends=True)
        first = max(first, 1)
        start = sum(len(line) for line in lines[: first - 1])
        end = sum(len(line) for line in lines[:last])
        return self.select(start, end)

    def clear_selection(self) -> None:
        self._selection = None

    # -- EditorView --------------------------------------------------------

    def active_file(self) -> tuple[str, str] | None:
        if self._active is None:
            return None
        return self._active, self._buffers[self._active]

    def get_selection(self) -> Selection | None:
        return self._selection

    def get_value_in_range(self, selection: Selection) -> str:
        if self._active is None:
            return ""
        return self._buffers[self._active][selection.start:selection.end]

    def execute_edits(self, selection: Selection, text: str) -> None:
        if self._active is None:
            raise ValueError("No file is open.")
        buffer = self._buffers[self._active]
        self._buffers[self._active] = buffer[: selection.start] + text + buffer[selection.end:]
        self._selection = Selection(selection.start, selection.start + len(text))

    def file_changed(self, path: str, content: str) -> None:
        if path in self._buffers:
            log.debug("Refreshing open buffer %s", path)
            self._buffers[path] = content
            if self._active == path:
                self._selection = None

    def file_removed(self, path: str) -> None:
        if path in self._buffers:
            log.debug("Closing buffer of deleted file %s", path)
            self.close(path)
