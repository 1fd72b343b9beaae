"""Code formatting collaborator backed by prettier."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from workbench.logging import get_logger

log = get_logger("formatter")

PARSERS = {
    "js": "babel",
    "ts": "babel",
    "jsx": "babel",
    "tsx": "babel",
    "html": "html",
    "css": "css",
    "scss": "css",
    "less": "css",
    "json": "json",
    "md": "markdown",
}
DEFAULT_PARSER = "babel"


def get_parser_for(filename: str) -> str:
    """Prettier parser for a file name, by extension."""
    return PARSERS.get(filename.rsplit(".", 1)[-1].lower(), DEFAULT_PARSER)


@dataclass(slots=True)
class FormatResult:
    success: bool
    formatted_code: str | None = None
    error: str | None = None


class Formatter(Protocol):
    async def format(self, code: str, parser: str) -> FormatResult: ...


class PrettierFormatter:
    """Pipes code through ``prettier --parser <parser>`` on stdin."""

    def __init__(self, command: Sequence[str] = ("npx", "--yes", "prettier"), timeout: float = 60.0) -> None:
        self._command = list(command)
        self._timeout = timeout

    async def format(self, code: str, parser: str) -> FormatResult:
        args = [*self._command, "--parser", parser]
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return FormatResult(False, error=f"Formatter not found: {self._command[0]}")

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(code.encode("utf-8")), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass
            return FormatResult(False, error=f"Formatter timed out after {self._timeout}s")

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            log.debug("prettier failed (%s): %s", process.returncode, message)
            return FormatResult(False, error=message or f"Formatter exited with code {process.returncode}")
        return FormatResult(True, formatted_code=stdout.decode("utf-8"))
