"""Command runner used by the terminal-backed tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from workbench.logging import get_logger
from workbench.terminal.protocol import TerminalExecutor
from workbench.terminal.subprocess_executor import SubprocessTerminalExecutor

if TYPE_CHECKING:
    from workbench.workspace.adapter import Workspace

log = get_logger("terminal")

RUN_TERMINAL_COMMAND = "run_terminal_command"


class SubprocessCommandRunner:
    """Runs ``run_terminal_command`` requests as local shell commands.

    Commands run in the workspace root when one is established, otherwise
    in the executor's default directory.
    """

    def __init__(
        self,
        executor: TerminalExecutor | None = None,
        workspace: Workspace | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 50000,
    ) -> None:
        self._executor = executor or SubprocessTerminalExecutor()
        self._workspace = workspace
        self._timeout = timeout
        self._output_limit = output_limit

    async def execute_tool(self, tool_name: str, parameters: dict[str, Any]) -> dict[str, Any]:
        if tool_name != RUN_TERMINAL_COMMAND:
            return {"status": "Error", "message": f"Unknown tool '{tool_name}'."}

        command = str(parameters.get("command") or "").strip()
        if not command:
            return {"status": "Error", "message": "No command provided."}

        cwd = None
        if self._workspace is not None and self._workspace.root is not None:
            cwd = str(self._workspace.root)

        result = await self._executor.execute(
            command,
            cwd=cwd,
            timeout=self._timeout,
            output_limit=self._output_limit,
        )
        log.debug("Command %r finished: %r", command, result)
        return result.to_envelope()
