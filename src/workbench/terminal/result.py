"""Outcome of one shell command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class ShellResult:
    """What a command did.

    ``status`` is "ok", "error", "timeout" or "killed". ``exit_code`` is None
    when the process never exited on its own; ``signal`` names the signal
    that ended it. ``output`` is stdout and stderr interleaved, clipped to
    the executor's output limit (``truncated`` says whether it was).
    """

    command: str
    exit_code: int | None
    output: str
    truncated: bool
    status: str
    signal: str | None
    duration_ms: float

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def failure_message(self) -> str:
        if self.status == "timeout":
            return self.output
        if self.status == "killed":
            return f"Command was killed by {self.signal}."
        return f"Command failed with exit code {self.exit_code}."

    def to_envelope(self) -> dict[str, Any]:
        """The tool result the model sees for this command."""
        if self.success:
            return {
                "status": "Success",
                "exit_code": self.exit_code,
                "output": self.output,
                "truncated": self.truncated,
            }
        return {
            "status": "Error",
            "message": self.failure_message,
            "exit_code": self.exit_code,
            "output": self.output,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "output": self.output,
            "truncated": self.truncated,
            "status": self.status,
            "signal": self.signal,
            "duration_ms": round(self.duration_ms, 1),
        }

    def __repr__(self) -> str:
        if self.success:
            lines = self.output.count("\n") + 1 if self.output else 0
            return f"<ShellResult ok, {lines} lines, {self.duration_ms:.0f}ms>"
        return f"<ShellResult {self.status}, exit={self.exit_code}>"
