"""System instructions for the chat modes.

Prompts are loaded from markdown files in this package.
"""

from __future__ import annotations

from datetime import datetime
from importlib.resources import files

_PROMPTS_PKG = files("workbench.prompts")

MODES = ("code", "plan", "search")
DEFAULT_MODE = "code"


def load_prompt(name: str) -> str:
    """Load a prompt by name (without .md extension)."""
    return _PROMPTS_PKG.joinpath(f"{name}.md").read_text(encoding="utf-8")


def system_instruction(mode: str, now: datetime | None = None) -> str:
    """System instruction text for a chat mode.

    Unknown modes fall back to the code prompt. The search prompt carries
    the current local time and timezone.
    """
    if mode == "search":
        now = (now or datetime.now()).astimezone()
        return load_prompt("search").format(
            time=now.strftime("%Y-%m-%d %H:%M:%S"),
            timezone=now.tzname() or "UTC",
        )
    if mode == "plan":
        return load_prompt("plan")
    return load_prompt("code")


CONDENSE_PROMPT = load_prompt("condense")

__all__ = [
    "MODES",
    "DEFAULT_MODE",
    "CONDENSE_PROMPT",
    "load_prompt",
    "system_instruction",
]
