"""Tool system — registry, executor, builtin tools."""
from .registry import (
    register_tool, get_tool, tool_schemas, registry,
    ToolRegistry, ToolDef, ToolCallRequest, ToolResult, NoArgs,
)
from .executor import execute_tool

# Auto-import builtin tools to trigger @register_tool decorators
from .builtin import *  # noqa

# Read-only from here on
registry.freeze()
