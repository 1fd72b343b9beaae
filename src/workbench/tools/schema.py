"""The fixed tool catalog.

Declarations use the OpenAI function-calling shape, which litellm
translates for every provider.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

_PATH_RULE = (
    "IMPORTANT: File paths must be relative to the project root. "
    "Do NOT include the root folder's name in the path."
)


class ToolName(str, Enum):
    CREATE_FILE = "create_file"
    DELETE_FILE = "delete_file"
    READ_FILE = "read_file"
    GET_OPEN_FILE_CONTENT = "get_open_file_content"
    GET_SELECTED_TEXT = "get_selected_text"
    REPLACE_SELECTED_TEXT = "replace_selected_text"
    GET_PROJECT_STRUCTURE = "get_project_structure"
    SEARCH_CODE = "search_code"
    RUN_TERMINAL_COMMAND = "run_terminal_command"
    BUILD_OR_UPDATE_CODEBASE_INDEX = "build_or_update_codebase_index"
    QUERY_CODEBASE = "query_codebase"
    GET_FILE_HISTORY = "get_file_history"
    REWRITE_FILE = "rewrite_file"
    APPLY_DIFF = "apply_diff"
    FORMAT_CODE = "format_code"

    @classmethod
    def lookup(cls, name: str) -> ToolName | None:
        try:
            return cls(name)
        except ValueError:
            return None


# Tools that touch the project tree fail fast without a workspace.
WORKSPACE_TOOLS = frozenset({
    ToolName.CREATE_FILE,
    ToolName.READ_FILE,
    ToolName.SEARCH_CODE,
    ToolName.GET_PROJECT_STRUCTURE,
    ToolName.DELETE_FILE,
    ToolName.BUILD_OR_UPDATE_CODEBASE_INDEX,
    ToolName.QUERY_CODEBASE,
    ToolName.REWRITE_FILE,
    ToolName.APPLY_DIFF,
    ToolName.FORMAT_CODE,
})


def _declare(
    name: ToolName,
    description: str,
    properties: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Function declaration with string parameters, all required."""
    props = properties or {}
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {
                    key: {"type": "string", "description": desc} for key, desc in props.items()
                },
                "required": list(props),
            },
        },
    }


TOOL_DECLARATIONS: list[dict[str, Any]] = [
    _declare(
        ToolName.CREATE_FILE,
        f"Creates a new file. {_PATH_RULE} Always use get_project_structure first "
        "to check for existing files.",
        {"filename": "Path of the file to create.", "content": "Full file content."},
    ),
    _declare(
        ToolName.DELETE_FILE,
        f"Deletes a file. {_PATH_RULE} CRITICAL: Use get_project_structure first "
        "to ensure the file exists.",
        {"filename": "Path of the file to delete."},
    ),
    _declare(
        ToolName.READ_FILE,
        f"Reads the content of an existing file. {_PATH_RULE} Always use "
        "get_project_structure first to get the correct file path.",
        {"filename": "Path of the file to read."},
    ),
    _declare(
        ToolName.GET_OPEN_FILE_CONTENT,
        "Gets the content of the currently open file in the editor.",
    ),
    _declare(
        ToolName.GET_SELECTED_TEXT,
        "Gets the text currently selected by the user in the editor.",
    ),
    _declare(
        ToolName.REPLACE_SELECTED_TEXT,
        "Replaces the currently selected text in the editor with new text.",
        {"new_text": "Replacement text."},
    ),
    _declare(
        ToolName.GET_PROJECT_STRUCTURE,
        "Gets the entire file and folder structure of the project. CRITICAL: Always "
        "use this tool before attempting to read or create a file to ensure you have "
        "the correct file path.",
    ),
    _declare(
        ToolName.SEARCH_CODE,
        "Searches for a specific string in all files in the project (like grep). "
        "Case-insensitive.",
        {"search_term": "Text to look for."},
    ),
    _declare(
        ToolName.RUN_TERMINAL_COMMAND,
        "Executes a shell command in the project folder and returns the output.",
        {"command": "Shell command line."},
    ),
    _declare(
        ToolName.BUILD_OR_UPDATE_CODEBASE_INDEX,
        "Scans the entire codebase to build a searchable index of functions, classes "
        "and TODOs. Slow, run once per session.",
    ),
    _declare(
        ToolName.QUERY_CODEBASE,
        "Searches the pre-built codebase index.",
        {"query": "Part of a function name, class name or TODO text."},
    ),
    _declare(
        ToolName.GET_FILE_HISTORY,
        "Retrieves the git commit history for a specific file.",
        {"filename": "Path of the file."},
    ),
    _declare(
        ToolName.REWRITE_FILE,
        "Rewrites a file with new content. Overwrites the entire existing file "
        "content. Prefer this over apply_diff for large changes.",
        {"filename": "Path of the file to overwrite.", "content": "New full content."},
    ),
    _declare(
        ToolName.APPLY_DIFF,
        f"Applies a unified diff (with @@ hunk headers) to an existing file. "
        f"{_PATH_RULE} Read the file first so the context lines match exactly.",
        {"filename": "Path of the file to patch.", "diff": "Unified diff text."},
    ),
    _declare(
        ToolName.FORMAT_CODE,
        "Formats a specific file using Prettier and saves the result.",
        {"filename": "Path of the file to format."},
    ),
]

# Service-side capability added in search mode.
SEARCH_TOOL: dict[str, Any] = {"googleSearch": {}}
