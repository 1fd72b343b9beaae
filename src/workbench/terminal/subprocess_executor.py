"""Local shell execution with asyncio subprocesses."""

from __future__ import annotations

import asyncio
import contextlib
import os
import time

from workbench.logging import get_logger
from workbench.terminal.result import ShellResult

log = get_logger("terminal")

TRUNCATION_MARKER = "\n... (output truncated)"


def _clip(output: str, limit: int) -> tuple[str, bool]:
    if len(output) <= limit:
        return output, False
    return output[:limit] + TRUNCATION_MARKER, True


def _spawn_failure(error: OSError, command: str, cwd: str) -> tuple[int, str]:
    """Exit code and message for a process that could not be started."""
    match error:
        case FileNotFoundError():
            return 127, f"Working directory not found: {cwd}"
        case PermissionError():
            return 126, f"Permission denied: {command}"
        case _:
            return 1, f"OS error: {error}"


class SubprocessTerminalExecutor:
    """Runs command lines through the system shell.

    stdin is closed and stderr is folded into stdout, so the model sees
    output in the order a terminal would have shown it.
    """

    def __init__(self, default_cwd: str = ".") -> None:
        self._default_cwd = default_cwd

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 50000,
    ) -> ShellResult:
        """Run ``command`` and wait for it, killing it after ``timeout`` seconds.

        Never raises for command-level problems: a missing directory, a
        timeout or a non-zero exit all come back as a ShellResult.
        """
        started = time.perf_counter()
        working_dir = cwd or self._default_cwd

        def finish(
            exit_code: int | None,
            output: str,
            status: str,
            *,
            truncated: bool = False,
            signal: str | None = None,
        ) -> ShellResult:
            return ShellResult(
                command=command,
                exit_code=exit_code,
                output=output,
                truncated=truncated,
                status=status,
                signal=signal,
                duration_ms=(time.perf_counter() - started) * 1000,
            )

        log.debug("Running %r in %s", command, working_dir)
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=working_dir,
                env={**os.environ, **env} if env else None,
            )
        except OSError as e:
            exit_code, message = _spawn_failure(e, command, working_dir)
            log.warning("Could not start %r: %s", command, e)
            return finish(exit_code, message, "error")

        try:
            raw, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            log.warning("Command timed out after %ss: %s", timeout, command)
            return finish(None, f"Command timed out after {timeout}s", "timeout", signal="SIGKILL")

        output, truncated = _clip(raw.decode("utf-8", errors="replace"), output_limit)
        exit_code = process.returncode
        if exit_code is not None and exit_code < 0:
            return finish(exit_code, output, "killed", truncated=truncated, signal=f"signal {-exit_code}")
        return finish(exit_code, output, "ok" if exit_code == 0 else "error", truncated=truncated)
