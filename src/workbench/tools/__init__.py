"""Tool catalog, dispatcher and the algorithms behind individual tools."""

from workbench.tools.code_index import CodeIndex, Definition, DefinitionKind, build_index, query_index
from workbench.tools.dispatcher import ToolDispatcher
from workbench.tools.patch import apply_patch
from workbench.tools.result import ToolResult, ToolStatus
from workbench.tools.schema import SEARCH_TOOL, TOOL_DECLARATIONS, WORKSPACE_TOOLS, ToolName

__all__ = [
    "CodeIndex",
    "Definition",
    "DefinitionKind",
    "build_index",
    "query_index",
    "ToolDispatcher",
    "apply_patch",
    "ToolResult",
    "ToolStatus",
    "SEARCH_TOOL",
    "TOOL_DECLARATIONS",
    "WORKSPACE_TOOLS",
    "ToolName",
]
