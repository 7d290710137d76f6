"""
FastAPI application serving the log tools.

Routes:

- GET  /health      -> {"status": "ok"}
- GET  /sse         -> MCP SSE stream (messages are posted to /messages/)
- GET  /tools       -> tool declarations with JSON input schemas
- POST /tools/call  -> {"name": ..., "arguments": {...}} -> tool response
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from session_logger.core.errors import UnknownToolError
from session_logger.storage.repository import LogRepository, get_repository
from .mcp_server import create_mcp_server
from .tools import TOOL_DEFINITIONS, call_tool

logger = logging.getLogger(__name__)


class ToolCallRequest(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


def create_app(repository: Optional[LogRepository] = None) -> FastAPI:
    """Build the app around `repository` (default: the shared repository).

    Route handlers are synchronous, so FastAPI runs them in its threadpool.
    """
    mcp_app = create_mcp_server(repository).http_app(transport="sse")

    app = FastAPI(title="Session Logger", lifespan=mcp_app.lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _repository() -> LogRepository:
        return repository or get_repository()

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/tools")
    def list_tools() -> Dict[str, Any]:
        return {"tools": TOOL_DEFINITIONS}

    @app.post("/tools/call")
    def handle_tool_call(request: ToolCallRequest) -> Dict[str, Any]:
        try:
            response = call_tool(request.name, request.arguments, repository=_repository())
        except UnknownToolError as e:
            logger.warning("Unknown tool requested: %s", request.name)
            raise HTTPException(status_code=404, detail=str(e))
        return response.to_dict()

    # Mounted last so the routes above take precedence
    app.mount("/", mcp_app)

    return app


# Default app for `uvicorn session_logger.service.app:app`
app = create_app()
