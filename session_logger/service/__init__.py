"""
Service layer for Session Logger.

Provides the tool handlers, the MCP server and the HTTP transport around them.
"""

from .mcp_server import create_mcp_server
from .tools import TOOL_DEFINITIONS, ToolResponse, call_tool

__all__ = ["TOOL_DEFINITIONS", "ToolResponse", "call_tool", "create_mcp_server"]
