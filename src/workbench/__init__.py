"""Workbench: a chat agent that reads, edits and runs code in a project folder."""

__version__ = "0.1.0"

# Public API
from workbench.config import Config, get_config, load_config
from workbench.core.llm import LiteLLMChatSession, SessionSpec, ToolCall
from workbench.session import (
    Attachment,
    CredentialPool,
    MemoryStateStore,
    SessionUpdate,
    TurnState,
    UpdateKind,
    YamlStateStore,
)
from workbench.session.turn_loop import TurnLoop
from workbench.terminal import ShellResult
from workbench.tools import ToolDispatcher, ToolResult, apply_patch
from workbench.workspace import Workspace

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config",
    # LLM
    "LiteLLMChatSession",
    "SessionSpec",
    "ToolCall",
    # Session
    "Attachment",
    "CredentialPool",
    "MemoryStateStore",
    "SessionUpdate",
    "TurnLoop",
    "TurnState",
    "UpdateKind",
    "YamlStateStore",
    # Tools
    "ShellResult",
    "ToolDispatcher",
    "ToolResult",
    "apply_patch",
    "Workspace",
]
