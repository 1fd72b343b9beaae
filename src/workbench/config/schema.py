"""Configuration schema dataclasses for Workbench.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_MODEL = "gemini/gemini-2.5-flash"
DEFAULT_IGNORE_DIRS = [".git", "node_modules", "dist", "build"]
DEFAULT_INDEX_EXTENSIONS = ["js", "html", "css", "md", "json", "py", "java", "ts"]


@dataclass
class LLMConfig:
    """Model service configuration."""

    model: str = DEFAULT_MODEL  # litellm model id
    mode: str = "code"  # "code", "plan" or "search"
    api_base: str | None = None  # Custom endpoint
    max_tokens: int | None = None
    safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"


@dataclass
class WorkspaceConfig:
    """Project workspace configuration."""

    root: str | None = None  # Initial project root (optional)
    ignore_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_DIRS))
    index_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_INDEX_EXTENSIONS)
    )


@dataclass
class ToolsConfig:
    """Tool execution limits."""

    command_timeout: float = 60.0  # Seconds
    output_limit: int = 50000  # Characters of command output kept
    formatter_command: list[str] = field(
        default_factory=lambda: ["npx", "--yes", "prettier"]
    )


@dataclass
class TurnConfig:
    """Turn loop limits.

    max_iterations bounds the number of model turns per user message.
    0 disables the ceiling.
    """

    max_iterations: int = 25


@dataclass
class StateConfig:
    """Where the key/value state store lives."""

    path: str = "~/.wb/state.yaml"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    turn: TurnConfig = field(default_factory=TurnConfig)
    state: StateConfig = field(default_factory=StateConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Extension point for future config sections
    extra: dict[str, Any] = field(default_factory=dict)
