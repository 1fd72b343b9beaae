"""Tool result envelopes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ToolStatus(str, Enum):
    SUCCESS = "Success"
    ERROR = "Error"


@dataclass(slots=True)
class ToolResult:
    """Outcome of one tool call: a status plus a JSON-shaped payload."""

    status: ToolStatus
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is ToolStatus.SUCCESS

    @property
    def message(self) -> str | None:
        return self.payload.get("message")

    @classmethod
    def success(cls, **payload: Any) -> ToolResult:
        return cls(ToolStatus.SUCCESS, payload)

    @classmethod
    def error(cls, message: str, **payload: Any) -> ToolResult:
        return cls(ToolStatus.ERROR, {"message": message, **payload})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolResult:
        """Read an envelope produced out of process."""
        payload = dict(data)
        status = payload.pop("status", None)
        if status == ToolStatus.SUCCESS.value:
            return cls(ToolStatus.SUCCESS, payload)
        payload.setdefault("message", "Command runner returned no status.")
        return cls(ToolStatus.ERROR, payload)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, **self.payload}
