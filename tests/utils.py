"""Shared test utilities and fixtures for Workbench tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import asdict
from types import SimpleNamespace
from typing import Any

from workbench.core.llm.provider import (
    InlineDataPart,
    Part,
    SessionSpec,
    StreamEvent,
    TextPart,
    ToolResultPart,
)


class ScriptedSession:
    """Model session that plays back a shared script.

    Each send_stream() pops one step off the script. A step is either an
    exception (raised before anything streams) or a list of events; an
    exception inside the list is raised at that point of the stream.
    History is committed only when a step streams to the end.
    """

    def __init__(self, spec: SessionSpec, script: list[Any]) -> None:
        self.spec = spec
        self._script = script
        self._history: list[dict[str, Any]] = [dict(m) for m in spec.history]
        self.sent: list[list[Part]] = []

    @property
    def model(self) -> str:
        return self.spec.model

    @property
    def history(self) -> list[dict[str, Any]]:
        return [dict(m) for m in self._history]

    def _commit(self, parts: Sequence[Part], reply: str) -> None:
        for part in parts:
            if isinstance(part, TextPart):
                self._history.append({"role": "user", "content": part.text})
            elif isinstance(part, InlineDataPart):
                self._history.append({"role": "user", "content": f"<{part.mime_type}>"})
            elif isinstance(part, ToolResultPart):
                self._history.append({"role": "tool", "content": asdict(part)})
        self._history.append({"role": "assistant", "content": reply})

    async def send_stream(self, parts: Sequence[Part]) -> AsyncIterator[StreamEvent]:
        self.sent.append(list(parts))
        step = self._script.pop(0)
        if isinstance(step, BaseException):
            raise step
        text = []
        for event in step:
            if isinstance(event, BaseException):
                raise event
            text.append(getattr(event, "text", ""))
            yield event
        self._commit(parts, "".join(text))

    async def send(self, text: str) -> str:
        step = self._script.pop(0)
        if isinstance(step, BaseException):
            raise step
        self._commit([TextPart(text)], step)
        return step


class ScriptedFactory:
    """Session factory that records every spec it was asked to build."""

    def __init__(self, *steps: Any) -> None:
        self.script: list[Any] = list(steps)
        self.specs: list[SessionSpec] = []
        self.sessions: list[ScriptedSession] = []

    def __call__(self, spec: SessionSpec) -> ScriptedSession:
        session = ScriptedSession(spec, self.script)
        self.specs.append(spec)
        self.sessions.append(session)
        return session

    @property
    def keys(self) -> list[str | None]:
        return [spec.api_key for spec in self.specs]


async def collect(updates: AsyncIterator[Any], on_update: Callable[[Any], None] | None = None) -> list[Any]:
    """Drain an update stream, optionally reacting to each update."""
    result = []
    async for update in updates:
        result.append(update)
        if on_update is not None:
            on_update(update)
    return result


def stream_chunk(content: str | None = None, tool_calls: list[Any] | None = None) -> SimpleNamespace:
    """A litellm streaming chunk with one choice."""
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(delta=delta)])


def tool_call_delta(
    index: int,
    call_id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
) -> SimpleNamespace:
    """One streamed tool-call fragment."""
    return SimpleNamespace(
        index=index,
        id=call_id,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def chunk_stream(*chunks: Any) -> AsyncIterator[Any]:
    """Async iterator over prepared chunks, like litellm's stream wrapper."""

    async def gen() -> AsyncIterator[Any]:
        for chunk in chunks:
            yield chunk

    return gen()


def completion_response(content: str) -> SimpleNamespace:
    """A non-streaming litellm response."""
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])
