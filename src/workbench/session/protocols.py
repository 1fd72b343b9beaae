"""Core types for the session layer.

These types define the contract between the turn loop and whatever
renders it (the CLI REPL, tests).
"""

from __future__ import annotations

import base64
import mimetypes
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from workbench.core.llm.provider import InlineDataPart

# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------


class UpdateKind(Enum):
    """Types of session updates emitted while a message is processed."""

    USER_MESSAGE = "user_message"
    RESPONSE_CHUNK = "response_chunk"
    TOOL_CALLS = "tool_calls"
    TOOL_RESULT = "tool_result"
    ASSISTANT_MESSAGE = "assistant_message"
    STATE_CHANGED = "state_changed"
    ERROR = "error"
    CANCELLED = "cancelled"
    DONE = "done"


class TurnState(Enum):
    """States of one outer request."""

    IDLE = "idle"
    AWAITING_STREAM = "awaiting_stream"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    CANCELLED = "cancelled"


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionUpdate:
    """Update emitted by TurnLoop.send()."""

    kind: UpdateKind
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One entry of the visible transcript.

    Attributes:
        sender: "user" or "assistant"
        text: Rendered text (assistant text is Markdown)
        notice: True for status lines from the app itself (rotation,
            cancellation, errors) rather than model output
    """

    sender: str
    text: str
    notice: bool = False


@dataclass(frozen=True, slots=True)
class Attachment:
    """A binary file sent along with a user message (e.g. a screenshot)."""

    name: str
    mime_type: str
    data: str  # base64

    @classmethod
    def from_path(cls, path: str | Path) -> Attachment:
        path = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            mime_type=mime_type or "application/octet-stream",
            data=base64.b64encode(path.read_bytes()).decode("ascii"),
        )

    def to_part(self) -> InlineDataPart:
        return InlineDataPart(mime_type=self.mime_type, data=self.data)
