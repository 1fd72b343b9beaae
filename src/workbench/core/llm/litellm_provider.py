"""LiteLLM chat session implementation.

Speaks the OpenAI chat format through litellm, so any provider litellm
supports can drive the turn loop:
- Gemini: "gemini/gemini-2.5-flash", "gemini/gemini-2.5-pro"
- Anthropic: "anthropic/claude-sonnet-4-20250514"
- OpenAI: "gpt-4o"
- Local: "ollama/qwen2.5-coder"

See https://docs.litellm.ai/docs/providers for full list.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

import litellm

from workbench.core.llm.provider import (
    InlineDataPart,
    Part,
    Role,
    SessionSpec,
    StreamEvent,
    TextDelta,
    TextPart,
    ToolCall,
    ToolCallBatch,
    ToolResultPart,
)
from workbench.errors import RateLimitedError, UnclassifiedError
from workbench.logging import TRACE, VERBOSE, get_logger

log = get_logger("llm")

CANCELLED_RESPONSE = {"status": "Error", "message": "The tool call was cancelled before it ran."}

# Providers that understand Gemini-style safety settings.
_SAFETY_PREFIXES = ("gemini/", "vertex_ai/")


def _translate(error: Exception) -> Exception:
    if isinstance(error, litellm.RateLimitError):
        return RateLimitedError(str(error))
    return UnclassifiedError(str(error) or error.__class__.__name__)


class LiteLLMChatSession:
    """Chat session with tool calling over litellm.acompletion.

    Usage:
        session = LiteLLMChatSession(SessionSpec(
            model="gemini/gemini-2.5-flash",
            api_key="...",
            system_instruction="You are helpful.",
            tools=TOOL_DECLARATIONS,
        ))
        async for event in session.send_stream([TextPart("Hello")]):
            ...
    """

    def __init__(self, spec: SessionSpec) -> None:
        self._spec = spec
        self._history: list[dict[str, Any]] = [dict(m) for m in spec.history]

    @property
    def model(self) -> str:
        return self._spec.model

    @property
    def spec(self) -> SessionSpec:
        return self._spec

    @property
    def history(self) -> list[dict[str, Any]]:
        return [dict(m) for m in self._history]

    # -- message building --------------------------------------------------

    def _pending_call_ids(self) -> list[tuple[str, str]]:
        """(id, name) of tool calls in the last turn that were never answered."""
        pending: list[tuple[str, str]] = []
        answered: set[str] = set()
        for message in reversed(self._history):
            if message.get("role") == Role.TOOL.value:
                answered.add(message.get("tool_call_id", ""))
                continue
            if message.get("role") == Role.ASSISTANT.value:
                for call in message.get("tool_calls") or []:
                    if call["id"] not in answered:
                        pending.append((call["id"], call["function"]["name"]))
            break
        return pending

    def _to_messages(self, parts: Sequence[Part]) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        answered = {p.call_id for p in parts if isinstance(p, ToolResultPart)}

        # A cancelled turn leaves tool calls without results; close them out.
        for call_id, name in self._pending_call_ids():
            if call_id not in answered:
                messages.append({
                    "role": Role.TOOL.value,
                    "tool_call_id": call_id,
                    "name": name,
                    "content": json.dumps(CANCELLED_RESPONSE),
                })

        content: list[dict[str, Any]] = []
        for part in parts:
            if isinstance(part, ToolResultPart):
                messages.append({
                    "role": Role.TOOL.value,
                    "tool_call_id": part.call_id,
                    "name": part.name,
                    "content": json.dumps(part.response, ensure_ascii=False),
                })
            elif isinstance(part, InlineDataPart):
                content.append({
                    "type": "image_url",
                    "image_url": {"url": f"data:{part.mime_type};base64,{part.data}"},
                })
            elif isinstance(part, TextPart):
                content.append({"type": "text", "text": part.text})

        if content:
            if all(c["type"] == "text" for c in content):
                text = "\n".join(c["text"] for c in content)
                messages.append({"role": Role.USER.value, "content": text})
            else:
                messages.append({"role": Role.USER.value, "content": content})
        return messages

    def _build_kwargs(self, messages: list[dict[str, Any]], *, stream: bool) -> dict[str, Any]:
        """Build kwargs for litellm call."""
        spec = self._spec
        kwargs: dict[str, Any] = {
            "model": spec.model,
            "messages": [
                {"role": Role.SYSTEM.value, "content": spec.system_instruction},
                *self._history,
                *messages,
            ],
            "stream": stream,
        }
        tools = [*spec.tools, *spec.extra_tools]
        if tools:
            kwargs["tools"] = tools
        if spec.api_key:
            kwargs["api_key"] = spec.api_key
        if spec.api_base:
            kwargs["api_base"] = spec.api_base
        if spec.max_tokens:
            kwargs["max_tokens"] = spec.max_tokens
        if spec.safety_settings and spec.model.startswith(_SAFETY_PREFIXES):
            kwargs["safety_settings"] = spec.safety_settings
        return kwargs

    # -- sending -----------------------------------------------------------

    async def send_stream(self, parts: Sequence[Part]) -> AsyncIterator[StreamEvent]:
        """Send prompt parts and stream text deltas, then the tool-call batch.

        The turn is committed to history just before the final event, so a
        stream that fails or is closed early leaves history untouched.
        """
        messages = self._to_messages(parts)
        kwargs = self._build_kwargs(messages, stream=True)
        log.log(VERBOSE, "Sending %d message(s) to %s", len(messages), self._spec.model)

        text_parts: list[str] = []
        calls: dict[int, dict[str, str]] = {}
        try:
            response = await litellm.acompletion(**kwargs)
            async for chunk in response:
                log.log(TRACE, "Stream chunk: %r", chunk)
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is None:
                    continue
                if delta.content:
                    text_parts.append(delta.content)
                    yield TextDelta(delta.content)
                for tool_call in getattr(delta, "tool_calls", None) or []:
                    index = tool_call.index if tool_call.index is not None else len(calls)
                    entry = calls.setdefault(index, {"id": "", "name": "", "arguments": ""})
                    if tool_call.id:
                        entry["id"] = tool_call.id
                    function = tool_call.function
                    if function is not None:
                        if function.name:
                            entry["name"] = function.name
                        if function.arguments:
                            entry["arguments"] += function.arguments
        except Exception as e:
            log.debug("Model service error: %s", e)
            raise _translate(e) from e

        tool_calls = [self._to_tool_call(index, entry) for index, entry in sorted(calls.items())]
        self._commit(messages, "".join(text_parts), tool_calls)
        if tool_calls:
            yield ToolCallBatch(tuple(tool_calls))

    async def send(self, text: str) -> str:
        """Send a plain text message and return the whole reply."""
        messages = self._to_messages([TextPart(text)])
        kwargs = self._build_kwargs(messages, stream=False)
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            raise _translate(e) from e
        content = response.choices[0].message.content or ""
        self._commit(messages, content, [])
        return content

    @staticmethod
    def _to_tool_call(index: int, entry: dict[str, str]) -> ToolCall:
        raw = entry["arguments"].strip()
        try:
            arguments = json.loads(raw) if raw else {}
        except json.JSONDecodeError:
            log.warning("Tool call %s has invalid JSON arguments: %r", entry["name"], raw)
            arguments = {}
        if not isinstance(arguments, dict):
            arguments = {}
        return ToolCall(
            name=entry["name"],
            arguments=arguments,
            call_id=entry["id"] or f"call_{index}",
        )

    def _commit(self, messages: list[dict[str, Any]], text: str, tool_calls: list[ToolCall]) -> None:
        reply: dict[str, Any] = {"role": Role.ASSISTANT.value, "content": text or None}
        if tool_calls:
            reply["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in tool_calls
            ]
        self._history.extend(messages)
        self._history.append(reply)


def create_session(spec: SessionSpec) -> LiteLLMChatSession:
    """Default session factory."""
    return LiteLLMChatSession(spec)
