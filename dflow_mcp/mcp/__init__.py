"""MCP router: envelope normalizer, method registry, tools, and HTTP transport."""

from .catalog import ToolCatalog, ToolDescriptor, build_server_info, load_tool_catalog
from .dispatcher import MethodRegistry
from .envelope import ParseFailure, normalize
from .server import create_mcp_server
from .tools import MCPTools, MissingArgument, ToolError, UnknownTool

__all__ = [
    "MCPTools",
    "MethodRegistry",
    "MissingArgument",
    "ParseFailure",
    "ToolCatalog",
    "ToolDescriptor",
    "ToolError",
    "UnknownTool",
    "build_server_info",
    "create_mcp_server",
    "load_tool_catalog",
    "normalize",
]
