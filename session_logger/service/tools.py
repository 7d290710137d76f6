"""
Tool handlers for save_conversation, query_logs and list_sessions.

Each handler takes the raw tool arguments, calls the repository and
returns a ToolResponse. Handlers never raise: any failure becomes an
error response so one bad request cannot take the server down.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from session_logger.core.errors import UnknownToolError, ValidationError
from session_logger.core.query import QueryFilters
from session_logger.storage.repository import LogRepository, get_repository

logger = logging.getLogger(__name__)


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "save_conversation",
        "description": (
            "Save the current conversation to a structured log file. Captures all "
            "messages with metadata including timestamps, session ID, and message content."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "messages": {
                    "type": "array",
                    "description": "Array of conversation messages to save",
                    "items": {
                        "type": "object",
                        "properties": {
                            "role": {
                                "type": "string",
                                "enum": ["user", "assistant"],
                                "description": "The role of the message sender",
                            },
                            "content": {
                                "type": "string",
                                "description": "The message content",
                            },
                        },
                        "required": ["role", "content"],
                    },
                },
                "session_id": {
                    "type": "string",
                    "description": "Optional session identifier. Auto-generated if not provided.",
                },
                "user_id": {
                    "type": "string",
                    "description": "Optional user identifier",
                },
                "metadata": {
                    "type": "object",
                    "description": "Optional additional metadata (model, temperature, etc.)",
                },
            },
            "required": ["messages"],
        },
    },
    {
        "name": "query_logs",
        "description": (
            "Search and retrieve saved conversation logs by session ID, date range, "
            "or keyword pattern."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "session_id": {"type": "string", "description": "Filter by session ID"},
                "user_id": {"type": "string", "description": "Filter by user ID"},
                "keyword": {
                    "type": "string",
                    "description": "Search for keyword in message content",
                },
                "start_date": {
                    "type": "string",
                    "description": "Start date in ISO format (e.g., 2025-10-01)",
                },
                "end_date": {
                    "type": "string",
                    "description": "End date in ISO format (e.g., 2025-10-04)",
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return (default: 50)",
                    "default": 50,
                },
            },
        },
    },
    {
        "name": "list_sessions",
        "description": (
            "List all saved session IDs with summary information "
            "(date, message count, etc.)"
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Maximum number of sessions to return (default: 20)",
                    "default": 20,
                },
            },
        },
    },
]


@dataclass(frozen=True)
class ToolResponse:
    """Text content for display plus the same result as structured data."""
    text: str
    is_error: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
            "structuredContent": self.data,
        }


def _optional_str(arguments: Mapping[str, Any], key: str) -> Optional[str]:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string")
    return value or None


def _optional_limit(arguments: Mapping[str, Any]) -> Optional[int]:
    """JSON numbers may arrive as floats; integral ones are accepted."""
    value = arguments.get("limit")
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("'limit' must be a positive integer")
    return value


def _error_response(action: str, error: Exception) -> ToolResponse:
    if isinstance(error, ValidationError):
        logger.warning("Rejected %s request: %s", action, error)
    else:
        logger.exception("Failed %s", action)
    return ToolResponse(
        text=f"Error {action}: {error}",
        is_error=True,
        data={"error": str(error), "error_type": type(error).__name__},
    )


def save_conversation(
    arguments: Optional[Mapping[str, Any]],
    repository: Optional[LogRepository] = None,
) -> ToolResponse:
    """Handle SaveConversation(messages, session_id?, user_id?, metadata?)."""
    try:
        arguments = arguments or {}
        repository = repository or get_repository()
        result = repository.save_conversation(
            arguments.get("messages"),
            session_id=_optional_str(arguments, "session_id"),
            user_id=_optional_str(arguments, "user_id"),
            metadata=arguments.get("metadata"),
        )
    except Exception as e:
        return _error_response("saving conversation", e)

    return ToolResponse(
        text=(
            f"✓ Saved {result.message_count} messages to session {result.session_id}\n"
            f"Log file: {result.log_file_path}\n"
            f"Timestamp: {result.timestamp}"
        ),
        data={
            "session_id": result.session_id,
            "log_file_path": str(result.log_file_path),
            "timestamp": result.timestamp,
            "message_count": result.message_count,
        },
    )


def query_logs(
    arguments: Optional[Mapping[str, Any]],
    repository: Optional[LogRepository] = None,
) -> ToolResponse:
    """Handle QueryLogs(session_id?, user_id?, keyword?, start_date?, end_date?, limit?)."""
    try:
        arguments = arguments or {}
        repository = repository or get_repository()
        filters = QueryFilters(
            session_id=_optional_str(arguments, "session_id"),
            user_id=_optional_str(arguments, "user_id"),
            keyword=_optional_str(arguments, "keyword"),
            start_date=_optional_str(arguments, "start_date"),
            end_date=_optional_str(arguments, "end_date"),
        )
        result = repository.query_logs(filters, limit=_optional_limit(arguments))
    except Exception as e:
        return _error_response("querying logs", e)

    entries = [entry.to_dict() for entry in result.entries]
    return ToolResponse(
        text=(
            f"Found {result.count} matching log entries:\n\n"
            f"{json.dumps(entries, indent=2, ensure_ascii=False)}"
        ),
        data={"count": result.count, "entries": entries},
    )


def list_sessions(
    arguments: Optional[Mapping[str, Any]],
    repository: Optional[LogRepository] = None,
) -> ToolResponse:
    """Handle ListSessions(limit?)."""
    try:
        arguments = arguments or {}
        repository = repository or get_repository()
        summaries = repository.list_sessions(limit=_optional_limit(arguments))
    except Exception as e:
        return _error_response("listing sessions", e)

    sessions = [summary.to_dict() for summary in summaries]
    return ToolResponse(
        text=(
            f"Found {len(sessions)} sessions:\n\n"
            f"{json.dumps(sessions, indent=2, ensure_ascii=False)}"
        ),
        data={"count": len(sessions), "sessions": sessions},
    )


TOOL_HANDLERS: Dict[str, Callable[..., ToolResponse]] = {
    "save_conversation": save_conversation,
    "query_logs": query_logs,
    "list_sessions": list_sessions,
}


def call_tool(
    name: str,
    arguments: Optional[Mapping[str, Any]] = None,
    repository: Optional[LogRepository] = None,
) -> ToolResponse:
    """Dispatch a tool call by name.

    Raises:
        UnknownToolError: If `name` is not a declared tool
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        raise UnknownToolError(name)
    return handler(arguments, repository=repository)
