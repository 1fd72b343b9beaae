"""Model session protocol and base types.

A model session owns the replayable history of one conversation. Each
send streams back a finite sequence of TextDelta and ToolCallBatch
events; the history only grows once a stream has run to completion, so a
failed or abandoned send can be retried with the same parts.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, Union, runtime_checkable


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


# -- prompt parts ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str


@dataclass(frozen=True, slots=True)
class InlineDataPart:
    """Binary attachment, base64 encoded (e.g. an image)."""

    mime_type: str
    data: str


@dataclass(frozen=True, slots=True)
class ToolResultPart:
    """The answer to one tool call of the previous turn."""

    call_id: str
    name: str
    response: dict[str, Any]


Part = Union[TextPart, InlineDataPart, ToolResultPart]


# -- stream events -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by the model. Immutable once received."""

    name: str
    arguments: dict[str, Any]
    call_id: str


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallBatch:
    """All tool calls of one turn, in the order the model issued them."""

    calls: tuple[ToolCall, ...]


StreamEvent = Union[TextDelta, ToolCallBatch]


# -- sessions ----------------------------------------------------------------

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def build_safety_settings(threshold: str) -> list[dict[str, str]]:
    return [{"category": category, "threshold": threshold} for category in HARM_CATEGORIES]


@dataclass(slots=True)
class SessionSpec:
    """Everything needed to (re)build a model session.

    Attributes:
        model: litellm model id (e.g. "gemini/gemini-2.5-flash")
        api_key: Credential drawn from the pool
        system_instruction: Mode-specific system prompt
        tools: Function declarations of the tool catalog
        extra_tools: Service-side capabilities (e.g. googleSearch)
        safety_settings: Per-category block thresholds
        history: Replayable history to seed the session with
    """

    model: str
    api_key: str | None
    system_instruction: str
    tools: list[dict[str, Any]] = field(default_factory=list)
    extra_tools: list[dict[str, Any]] = field(default_factory=list)
    safety_settings: list[dict[str, str]] = field(default_factory=list)
    api_base: str | None = None
    max_tokens: int | None = None
    history: list[dict[str, Any]] = field(default_factory=list)


@runtime_checkable
class ModelSession(Protocol):
    """Protocol for chat sessions with a model service."""

    @property
    def model(self) -> str:
        """The model identifier being used."""
        ...

    @property
    def history(self) -> list[dict[str, Any]]:
        """Committed, replayable history (a copy)."""
        ...

    def send_stream(self, parts: Sequence[Part]) -> AsyncIterator[StreamEvent]:
        """Send prompt parts and stream the response.

        Raises:
            RateLimitedError: The credential is being throttled.
            UnclassifiedError: Any other service failure.
        """
        ...

    async def send(self, text: str) -> str:
        """Send a plain text message and return the full reply."""
        ...


SessionFactory = Callable[[SessionSpec], ModelSession]
