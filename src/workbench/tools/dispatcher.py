"""Tool dispatcher.

Maps a tool call from the model onto the workspace, the patch applier, the
code index, the editor view or the command runner, and always answers
with a ToolResult. Nothing raised by a tool escapes execute(): failures
become Error envelopes so the model can read them and try something else.
"""

from __future__ import annotations

import asyncio
import shlex
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from workbench.collaborators.formatter import get_parser_for
from workbench.config.schema import DEFAULT_INDEX_EXTENSIONS
from workbench.errors import NoWorkspaceError, ToolUnknownError
from workbench.logging import VERBOSE, get_logger
from workbench.session.storage import CODE_INDEX
from workbench.tools.code_index import CodeIndex, build_index, query_index
from workbench.tools.patch import apply_patch
from workbench.tools.result import ToolResult
from workbench.tools.schema import WORKSPACE_TOOLS, ToolName
from workbench.workspace.tree import format_tree

if TYPE_CHECKING:
    from workbench.collaborators.editor import EditorView, TreeView
    from workbench.collaborators.formatter import Formatter
    from workbench.core.llm.provider import ToolCall
    from workbench.session.storage import StateStore
    from workbench.terminal.protocol import CommandRunner
    from workbench.workspace.adapter import Workspace

log = get_logger("tools")

GIT_HISTORY_FORMAT = '--pretty=format:"%h - %an, %ar : %s"'
NO_INDEX_MESSAGE = "No codebase index. Please run 'build_or_update_codebase_index'."


def _summarize(arguments: dict[str, Any], limit: int = 120) -> str:
    parts = []
    for key, value in arguments.items():
        text = repr(value)
        if len(text) > limit:
            text = text[: limit - 3] + "..."
        parts.append(f"{key}={text}")
    return ", ".join(parts)


def _require(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if value is None:
        raise ValueError(f"Missing required argument '{key}'.")
    return str(value)


class ToolDispatcher:
    """Executes tool calls against the workspace and its collaborators."""

    def __init__(
        self,
        workspace: Workspace,
        store: StateStore,
        *,
        editor: EditorView | None = None,
        tree_view: TreeView | None = None,
        formatter: Formatter | None = None,
        command_runner: CommandRunner | None = None,
        index_extensions: Iterable[str] = DEFAULT_INDEX_EXTENSIONS,
    ) -> None:
        self._workspace = workspace
        self._store = store
        self._editor = editor
        self._tree_view = tree_view
        self._formatter = formatter
        self._command_runner = command_runner
        self._index_extensions = frozenset(index_extensions)

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Run one tool and return its envelope. Never raises."""
        arguments = arguments or {}
        log.info("Tool call: %s", name)
        log.log(VERBOSE, "Tool arguments: %s(%s)", name, _summarize(arguments))
        tool = ToolName.lookup(name)
        try:
            if tool in WORKSPACE_TOOLS and not self._workspace.is_open:
                raise NoWorkspaceError()
            result = await self._dispatch(tool, name, arguments)
        except ToolUnknownError as e:
            log.warning("Model requested unknown tool %r", name)
            result = ToolResult.error(str(e))
        except Exception as e:
            log.warning("Tool %s failed: %s", name, e)
            result = ToolResult.error(f"Error executing tool '{name}': {e}")
        log.debug("Tool result: %s -> %s", name, result.status.value)
        return result

    async def execute_all(self, calls: Sequence[ToolCall]) -> list[ToolResult]:
        """Run a batch concurrently; results come back in request order."""
        return list(await asyncio.gather(*(self.execute(c.name, c.arguments) for c in calls)))

    async def _dispatch(self, tool: ToolName | None, name: str, args: dict[str, Any]) -> ToolResult:
        match tool:
            case ToolName.GET_PROJECT_STRUCTURE:
                tree = await self._workspace.list_tree()
                return ToolResult.success(structure=format_tree(tree))

            case ToolName.READ_FILE:
                content = await self._workspace.read(_require(args, "filename"))
                return ToolResult.success(content=content)

            case ToolName.CREATE_FILE:
                filename = _require(args, "filename")
                content = _require(args, "content")
                await self._workspace.write(filename, content, create=True)
                self._file_changed(filename, content)
                return ToolResult.success(message=f"File '{filename}' created successfully.")

            case ToolName.DELETE_FILE:
                filename = _require(args, "filename")
                await self._workspace.remove(filename)
                self._file_removed(filename)
                return ToolResult.success(message=f"File '{filename}' deleted successfully.")

            case ToolName.REWRITE_FILE:
                filename = _require(args, "filename")
                content = _require(args, "content")
                await self._workspace.write(filename, content)
                self._file_changed(filename, content)
                return ToolResult.success(message=f"File '{filename}' rewritten successfully.")

            case ToolName.APPLY_DIFF:
                filename = _require(args, "filename")
                original = await self._workspace.read(filename)
                patched = apply_patch(original, _require(args, "diff"))
                await self._workspace.write(filename, patched)
                self._file_changed(filename, patched)
                return ToolResult.success(message=f"Diff applied to '{filename}' successfully.")

            case ToolName.FORMAT_CODE:
                return await self._format_code(_require(args, "filename"))

            case ToolName.SEARCH_CODE:
                matches = await self._workspace.search(_require(args, "search_term"))
                return ToolResult.success(results=[m.to_dict() for m in matches])

            case ToolName.BUILD_OR_UPDATE_CODEBASE_INDEX:
                index = await build_index(self._workspace, self._index_extensions)
                await self._store.put(CODE_INDEX, index.to_dict())
                return ToolResult.success(
                    message="Codebase index built successfully.",
                    files=len(index.files),
                    definitions=len(index),
                )

            case ToolName.QUERY_CODEBASE:
                data = await self._store.get(CODE_INDEX)
                if not data:
                    return ToolResult.error(NO_INDEX_MESSAGE)
                index = CodeIndex.from_dict(data)
                return ToolResult.success(results=query_index(index, _require(args, "query")))

            case ToolName.GET_OPEN_FILE_CONTENT:
                active = self._editor.active_file() if self._editor else None
                if active is None:
                    return ToolResult.error("No file is currently open in the editor.")
                filename, content = active
                return ToolResult.success(filename=filename, content=content)

            case ToolName.GET_SELECTED_TEXT:
                selection = self._editor.get_selection() if self._editor else None
                if selection is None or selection.is_empty:
                    return ToolResult.error("No text is currently selected.")
                return ToolResult.success(selected_text=self._editor.get_value_in_range(selection))

            case ToolName.REPLACE_SELECTED_TEXT:
                new_text = _require(args, "new_text")
                selection = self._editor.get_selection() if self._editor else None
                if selection is None or selection.is_empty:
                    return ToolResult.error("No text is currently selected to be replaced.")
                self._editor.execute_edits(selection, new_text)
                return ToolResult.success(message="Replaced the selected text.")

            case ToolName.RUN_TERMINAL_COMMAND:
                return await self._run_command({"command": _require(args, "command")})

            case ToolName.GET_FILE_HISTORY:
                filename = _require(args, "filename")
                command = f"git log {GIT_HISTORY_FORMAT} -- {shlex.quote(filename)}"
                return await self._run_command({"command": command})

            case None:
                raise ToolUnknownError(name)

    async def _format_code(self, filename: str) -> ToolResult:
        if self._formatter is None:
            return ToolResult.error("No code formatter is configured.")
        original = await self._workspace.read(filename)
        formatted = await self._formatter.format(original, get_parser_for(filename))
        if not formatted.success or formatted.formatted_code is None:
            return ToolResult.error(f"Formatting '{filename}' failed: {formatted.error}")
        if formatted.formatted_code != original:
            await self._workspace.write(filename, formatted.formatted_code)
            self._file_changed(filename, formatted.formatted_code)
        return ToolResult.success(message=f"File '{filename}' formatted successfully.")

    async def _run_command(self, parameters: dict[str, Any]) -> ToolResult:
        if self._command_runner is None:
            return ToolResult.error("Terminal commands are not available.")
        response = await self._command_runner.execute_tool(
            ToolName.RUN_TERMINAL_COMMAND.value, parameters
        )
        return ToolResult.from_dict(response)

    # -- collaborator notifications ----------------------------------------

    def _file_changed(self, filename: str, content: str) -> None:
        if self._tree_view is not None:
            self._tree_view.refresh()
        if self._editor is not None:
            self._editor.file_changed("/".join(self._workspace.split(filename)), content)

    def _file_removed(self, filename: str) -> None:
        if self._tree_view is not None:
            self._tree_view.refresh()
        if self._editor is not None:
            self._editor.file_removed("/".join(self._workspace.split(filename)))
