"""Out-of-process command execution.

Provides the shell executor behind run_terminal_command and
get_file_history, and the runner that wraps its results in tool envelopes.
"""

from workbench.terminal.protocol import CommandRunner, TerminalExecutor
from workbench.terminal.result import ShellResult
from workbench.terminal.runner import SubprocessCommandRunner
from workbench.terminal.subprocess_executor import SubprocessTerminalExecutor

__all__ = [
    "CommandRunner",
    "ShellResult",
    "SubprocessCommandRunner",
    "SubprocessTerminalExecutor",
    "TerminalExecutor",
]
