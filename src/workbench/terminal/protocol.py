"""Seams between the tools and out-of-process command execution."""

from __future__ import annotations

from typing import Any, Protocol

from workbench.terminal.result import ShellResult


class TerminalExecutor(Protocol):
    """Runs one shell command line to completion.

    ``cwd`` of None means the executor's own default directory; ``timeout``
    of None waits forever. Implementations report every outcome, including
    timeouts and unstartable commands, as a ShellResult.
    """

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 50000,
    ) -> ShellResult: ...


class CommandRunner(Protocol):
    """Request/response bridge to the out-of-process command runner.

    Carries a tool name and its parameters and answers with a JSON-shaped
    result envelope (``{"status": "Success" | "Error", ...}``).
    """

    async def execute_tool(self, tool_name: str, parameters: dict[str, Any]) -> dict[str, Any]: ...
