"""The turn loop: one user message, many model turns.

send() drives a single outer request through

    Idle -> AwaitingStream -> (ExecutingTools -> AwaitingStream)* -> Done

with Cancelled reachable from any non-idle state. Each model turn streams
text and collects tool calls; when the stream ends with tool calls, they
run as one concurrent batch and their results (and only their results)
become the next prompt. Rate limiting rotates to the next credential and
retries the same prompt until every credential was tried once during this
message. Everything the loop does is reported as SessionUpdate events.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

from workbench.config.schema import Config
from workbench.core.llm.litellm_provider import create_session
from workbench.core.llm.provider import (
    ModelSession,
    Part,
    SessionFactory,
    SessionSpec,
    TextDelta,
    TextPart,
    ToolCall,
    ToolCallBatch,
    ToolResultPart,
    build_safety_settings,
)
from workbench.errors import NoCredentialError, is_rate_limited
from workbench.logging import get_logger
from workbench.prompts import CONDENSE_PROMPT, MODES, system_instruction
from workbench.session.credentials import CredentialPool
from workbench.session.protocols import (
    Attachment,
    ChatMessage,
    SessionUpdate,
    TurnState,
    UpdateKind,
)
from workbench.tools.dispatcher import ToolDispatcher
from workbench.tools.schema import SEARCH_TOOL, TOOL_DECLARATIONS

log = get_logger("turn")

CANCELLED_NOTICE = "Cancelled by user."
ROTATING_NOTICE = "API key failed. Rotating to the next key..."
USING_TOOLS_NOTICE = "AI is using tools..."


class TurnLoop:
    """Owns the model session and drives outer requests through it.

    The session and the credential pool are only touched from here. A
    second send() while one is in flight is refused.
    """

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        credentials: CredentialPool,
        *,
        config: Config | None = None,
        session_factory: SessionFactory = create_session,
    ) -> None:
        config = config or Config()
        self._dispatcher = dispatcher
        self._credentials = credentials
        self._factory = session_factory
        self._llm_config = config.llm
        self._max_iterations = config.turn.max_iterations
        self._model = config.llm.model
        self._mode = config.llm.mode if config.llm.mode in MODES else "code"

        self._session: ModelSession | None = None
        self._session_key: str | None = None
        self._state = TurnState.IDLE
        self._sending = False
        self._cancelled = False
        self._transcript: list[ChatMessage] = []

    # -- properties --------------------------------------------------------

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def model(self) -> str:
        return self._model

    @property
    def session(self) -> ModelSession | None:
        return self._session

    @property
    def credentials(self) -> CredentialPool:
        return self._credentials

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    @property
    def is_sending(self) -> bool:
        return self._sending

    @property
    def transcript(self) -> list[ChatMessage]:
        return list(self._transcript)

    # -- session management ------------------------------------------------

    def _spec(self, api_key: str, history: list[dict[str, Any]]) -> SessionSpec:
        return SessionSpec(
            model=self._model,
            api_key=api_key,
            system_instruction=system_instruction(self._mode),
            tools=TOOL_DECLARATIONS,
            extra_tools=[SEARCH_TOOL] if self._mode == "search" else [],
            safety_settings=build_safety_settings(self._llm_config.safety_threshold),
            api_base=self._llm_config.api_base,
            max_tokens=self._llm_config.max_tokens,
            history=history,
        )

    def _build_session(self, api_key: str, history: list[dict[str, Any]]) -> ModelSession:
        self._session = self._factory(self._spec(api_key, history))
        self._session_key = api_key
        log.info("Started %s session with model %s", self._mode, self._model)
        return self._session

    def start_session(self) -> ModelSession:
        """Start a fresh session with the current credential.

        Raises:
            NoCredentialError: If no credentials are loaded.
        """
        return self._build_session(self._credentials.current(), [])

    def _ensure_session(self) -> ModelSession:
        key = self._credentials.current()
        if self._session is None:
            return self._build_session(key, [])
        if key != self._session_key:
            return self._build_session(key, self._session.history)
        return self._session

    def _rotate(self) -> None:
        history = self._session.history if self._session else []
        self._credentials.rotate()
        self._build_session(self._credentials.current(), history)

    def set_mode(self, mode: str) -> None:
        """Switch the chat mode. The next message starts a new session."""
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}'. Choose one of: {', '.join(MODES)}.")
        self._mode = mode
        self._session = None

    def set_model(self, model: str) -> None:
        """Switch the model. The next message starts a new session."""
        self._model = model
        self._session = None

    def reload_credentials(self, keys: Iterable[str]) -> None:
        self._credentials.load(keys)
        self._session = None

    def clear_history(self) -> None:
        """Drop the conversation and start over."""
        self._session = None
        self._transcript = [ChatMessage("assistant", "Conversation history cleared.", notice=True)]

    def view_history(self) -> str:
        """Replayable history of the current session as JSON."""
        history = self._session.history if self._session else []
        return json.dumps(history, indent=2, ensure_ascii=False)

    async def condense_history(self) -> str | None:
        """Replace the session with a new one seeded with a summary.

        Returns the summary, or None when there is nothing to condense.
        """
        if self._sending:
            log.warning("Cannot condense while a request is in flight")
            return None
        if self._session is None or not self._session.history:
            self._transcript.append(ChatMessage("assistant", "History is already empty.", notice=True))
            return None

        summary = await self._session.send(CONDENSE_PROMPT)
        seed = [
            {"role": "user", "content": CONDENSE_PROMPT},
            {"role": "assistant", "content": summary},
        ]
        self._build_session(self._credentials.current(), seed)
        self._transcript = [
            ChatMessage("assistant", "Original conversation history has been condensed.", notice=True),
            ChatMessage("assistant", summary),
        ]
        return summary

    # -- sending -----------------------------------------------------------

    def cancel(self) -> None:
        """Stop the in-flight request at its next suspension point."""
        if self._sending:
            log.info("Cancelling in-flight request")
            self._cancelled = True

    def _update(self, kind: UpdateKind, **payload: Any) -> SessionUpdate:
        return SessionUpdate(kind=kind, payload=payload)

    def _set_state(self, state: TurnState) -> SessionUpdate:
        log.debug("Turn state %s -> %s", self._state.value, state.value)
        self._state = state
        return self._update(UpdateKind.STATE_CHANGED, state=state.value)

    def _notice(self, text: str) -> SessionUpdate:
        self._transcript.append(ChatMessage("assistant", text, notice=True))
        return self._update(UpdateKind.ASSISTANT_MESSAGE, text=text, notice=True)

    def _record_reply(self, chunks: list[str]) -> SessionUpdate | None:
        text = "".join(chunks)
        if not text:
            return None
        self._transcript.append(ChatMessage("assistant", text))
        return self._update(UpdateKind.ASSISTANT_MESSAGE, text=text)

    async def send(self, text: str, attachment: Attachment | None = None) -> AsyncIterator[SessionUpdate]:
        """Process one user message to completion, streaming updates.

        Always ends with a DONE or CANCELLED update, except when the message
        is refused (empty, or another request still in flight) in which case
        nothing is yielded.
        """
        text = text.strip()
        if self._sending:
            log.warning("A request is already in flight; ignoring new message")
            return
        if not text and attachment is None:
            return

        self._sending = True
        self._cancelled = False
        try:
            async for update in self._run(text, attachment):
                yield update
        finally:
            self._sending = False

    async def _run(self, text: str, attachment: Attachment | None) -> AsyncIterator[SessionUpdate]:
        parts: list[Part] = []
        display = text
        if text:
            parts.append(TextPart(text))
        if attachment is not None:
            display = f"{display}\n📎 Attached: {attachment.name}".strip()
            parts.append(attachment.to_part())
        self._transcript.append(ChatMessage("user", display))
        yield self._update(UpdateKind.USER_MESSAGE, text=display)

        self._credentials.reset_cycle()
        try:
            session = self._ensure_session()
        except NoCredentialError as e:
            async for update in self._fail(e):
                yield update
            return

        turns = 0
        while True:
            if self._cancelled:
                async for update in self._cancel():
                    yield update
                return
            yield self._set_state(TurnState.AWAITING_STREAM)
            chunks: list[str] = []
            batch: list[ToolCall] = []
            try:
                async with contextlib.aclosing(session.send_stream(parts)) as stream:
                    async for event in stream:
                        if self._cancelled:
                            break
                        match event:
                            case TextDelta(text=delta):
                                chunks.append(delta)
                                yield self._update(UpdateKind.RESPONSE_CHUNK, text=delta)
                            case ToolCallBatch(calls=calls):
                                batch.extend(calls)
            except Exception as e:
                reply = self._record_reply(chunks)
                if reply is not None:
                    yield reply
                if self._cancelled:
                    async for update in self._cancel():
                        yield update
                    return
                if is_rate_limited(e) and not self._credentials.exhausted():
                    log.warning("Rate limited on credential %d: %s", self._credentials.cursor, e)
                    yield self._notice(ROTATING_NOTICE)
                    self._rotate()
                    session = self._session
                    continue
                async for update in self._fail(e):
                    yield update
                return

            reply = self._record_reply(chunks)
            if reply is not None:
                yield reply
            if self._cancelled:
                async for update in self._cancel():
                    yield update
                return

            turns += 1
            if not batch:
                yield self._set_state(TurnState.DONE)
                yield self._update(UpdateKind.DONE)
                return

            if self._max_iterations and turns >= self._max_iterations:
                log.warning("Turn limit of %d reached", self._max_iterations)
                yield self._notice(
                    f"Stopped after {turns} model turns without a final answer. "
                    "Send another message to continue."
                )
                yield self._set_state(TurnState.DONE)
                yield self._update(UpdateKind.DONE)
                return

            yield self._update(
                UpdateKind.TOOL_CALLS,
                message=USING_TOOLS_NOTICE,
                calls=[{"name": c.name, "arguments": c.arguments, "call_id": c.call_id} for c in batch],
            )
            yield self._set_state(TurnState.EXECUTING_TOOLS)
            results = await self._dispatcher.execute_all(batch)
            if self._cancelled:
                # Started tools ran to completion; their results are dropped.
                async for update in self._cancel():
                    yield update
                return

            for call, result in zip(batch, results):
                yield self._update(
                    UpdateKind.TOOL_RESULT,
                    name=call.name,
                    call_id=call.call_id,
                    status=result.status.value,
                    response=result.to_dict(),
                )
            parts = self._tool_result_parts(batch, [r.to_dict() for r in results])

    @staticmethod
    def _tool_result_parts(calls: Sequence[ToolCall], responses: list[dict[str, Any]]) -> list[Part]:
        return [
            ToolResultPart(call_id=call.call_id, name=call.name, response=response)
            for call, response in zip(calls, responses)
        ]

    async def _cancel(self) -> AsyncIterator[SessionUpdate]:
        yield self._notice(CANCELLED_NOTICE)
        yield self._set_state(TurnState.CANCELLED)
        yield self._update(UpdateKind.CANCELLED, message=CANCELLED_NOTICE)

    async def _fail(self, error: Exception) -> AsyncIterator[SessionUpdate]:
        log.error("Request failed: %s", error)
        message = f"An error occurred: {error}"
        self._transcript.append(ChatMessage("assistant", message, notice=True))
        yield self._update(UpdateKind.ERROR, message=message)
        yield self._set_state(TurnState.DONE)
        yield self._update(UpdateKind.DONE)
