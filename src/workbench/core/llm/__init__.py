"""Model service abstraction."""

from workbench.core.llm.litellm_provider import LiteLLMChatSession, create_session
from workbench.core.llm.provider import (
    InlineDataPart,
    ModelSession,
    Part,
    Role,
    SessionFactory,
    SessionSpec,
    StreamEvent,
    TextDelta,
    TextPart,
    ToolCall,
    ToolCallBatch,
    ToolResultPart,
    build_safety_settings,
)

__all__ = [
    # Session protocol and implementation
    "ModelSession",
    "SessionFactory",
    "SessionSpec",
    "LiteLLMChatSession",
    "create_session",
    "build_safety_settings",
    # Prompt parts
    "Part",
    "Role",
    "TextPart",
    "InlineDataPart",
    "ToolResultPart",
    # Stream events
    "StreamEvent",
    "TextDelta",
    "ToolCall",
    "ToolCallBatch",
]
