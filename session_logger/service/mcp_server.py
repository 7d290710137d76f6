"""
MCP server exposing the log tools.

Registers save_conversation, query_logs and list_sessions with FastMCP.
`create_app` mounts the server's SSE transport (`GET /sse`, `POST /messages/`)
next to the HTTP routes.
"""

import logging
from typing import Annotated, Any, Dict, List, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from session_logger.storage.repository import LogRepository
from . import tools
from .tools import TOOL_DEFINITIONS, ToolResponse

logger = logging.getLogger(__name__)

SERVER_NAME = "session-logger"

_DESCRIPTIONS = {tool["name"]: tool["description"] for tool in TOOL_DEFINITIONS}


def _result_text(response: ToolResponse) -> str:
    """Unwrap a handler response; error responses become MCP tool errors."""
    if response.is_error:
        raise ToolError(response.text)
    return response.text


def create_mcp_server(repository: Optional[LogRepository] = None) -> FastMCP:
    """Build the MCP server around `repository` (default: the shared repository)."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(
        name="save_conversation",
        description=_DESCRIPTIONS["save_conversation"],
        annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": False},
    )
    def save_conversation(
        messages: Annotated[
            List[Dict[str, Any]],
            Field(description="Array of {role, content} messages to save"),
        ],
        session_id: Annotated[
            Optional[str],
            Field(description="Optional session identifier. Auto-generated if not provided."),
        ] = None,
        user_id: Annotated[Optional[str], Field(description="Optional user identifier")] = None,
        metadata: Annotated[
            Optional[Dict[str, Any]],
            Field(description="Optional additional metadata (model, temperature, etc.)"),
        ] = None,
    ) -> str:
        return _result_text(tools.save_conversation(
            {
                "messages": messages,
                "session_id": session_id,
                "user_id": user_id,
                "metadata": metadata,
            },
            repository=repository,
        ))

    @mcp.tool(
        name="query_logs",
        description=_DESCRIPTIONS["query_logs"],
        annotations={"readOnlyHint": True},
    )
    def query_logs(
        session_id: Annotated[Optional[str], Field(description="Filter by session ID")] = None,
        user_id: Annotated[Optional[str], Field(description="Filter by user ID")] = None,
        keyword: Annotated[
            Optional[str], Field(description="Search for keyword in message content")
        ] = None,
        start_date: Annotated[
            Optional[str], Field(description="Start date in ISO format (e.g., 2025-10-01)")
        ] = None,
        end_date: Annotated[
            Optional[str], Field(description="End date in ISO format (e.g., 2025-10-04)")
        ] = None,
        limit: Annotated[
            Optional[int], Field(description="Maximum number of results to return (default: 50)")
        ] = None,
    ) -> str:
        return _result_text(tools.query_logs(
            {
                "session_id": session_id,
                "user_id": user_id,
                "keyword": keyword,
                "start_date": start_date,
                "end_date": end_date,
                "limit": limit,
            },
            repository=repository,
        ))

    @mcp.tool(
        name="list_sessions",
        description=_DESCRIPTIONS["list_sessions"],
        annotations={"readOnlyHint": True},
    )
    def list_sessions(
        limit: Annotated[
            Optional[int], Field(description="Maximum number of sessions to return (default: 20)")
        ] = None,
    ) -> str:
        return _result_text(tools.list_sessions({"limit": limit}, repository=repository))

    logger.debug("Registered MCP tools: %s", ", ".join(_DESCRIPTIONS))
    return mcp
