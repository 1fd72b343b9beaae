"""Error taxonomy for Workbench.

Workspace and patch errors propagate up to the tool dispatcher, which turns
every one of them into an Error envelope for the model. Only
RateLimitedError is intercepted by the turn loop for automatic recovery.
"""

from __future__ import annotations


class WorkbenchError(Exception):
    """Base class for all Workbench errors."""


class NoWorkspaceError(WorkbenchError):
    """An operation needs a project root and none is established."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No project folder is open. You must ask the user to open a project "
            "folder (/open <dir>) and then try the operation again."
        )


class NotFoundError(WorkbenchError):
    """A workspace path could not be resolved."""


class InvalidPathError(WorkbenchError):
    """A workspace path is empty or tries to leave the project root."""


class PatchFailedError(WorkbenchError):
    """A unified diff does not apply to the given content."""


class NoCredentialError(WorkbenchError):
    """The credential pool is empty."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "No API key provided. Please add one with /keys or WB_API_KEYS."
        )


class RateLimitedError(WorkbenchError):
    """The model service rejected the request because of rate limiting (429)."""


class ToolUnknownError(WorkbenchError):
    """The model requested a tool that is not in the declared set."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool '{name}'.")
        self.name = name


class UnclassifiedError(WorkbenchError):
    """An external command or service failed for any other reason."""


def is_rate_limited(error: BaseException) -> bool:
    """True if the error means the current credential is being throttled."""
    if isinstance(error, RateLimitedError):
        return True
    return "429" in str(error)
