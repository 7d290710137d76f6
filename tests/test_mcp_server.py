"""
Tests for the MCP server and its SSE mount.
"""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from fastmcp import Client

from session_logger.config.loader import StoreConfig
from session_logger.service.app import create_app
from session_logger.service.mcp_server import create_mcp_server
from session_logger.storage.repository import LogRepository


def call(server, name, arguments=None):
    async def _call():
        async with Client(server) as client:
            return await client.call_tool_mcp(name, arguments or {})
    return asyncio.run(_call())


def list_tool_names(server):
    async def _list():
        async with Client(server) as client:
            return [tool.name for tool in await client.list_tools()]
    return asyncio.run(_list())


class TestMcpServer:
    """Test tool calls through an in-memory MCP client."""

    def setup_method(self):
        self._temp = tempfile.TemporaryDirectory()
        self.log_dir = Path(self._temp.name)

    def teardown_method(self):
        self._temp.cleanup()

    def server(self, clock):
        return create_mcp_server(LogRepository(StoreConfig(log_dir=self.log_dir), clock=clock))

    def test_tools_listed(self, clock):
        assert sorted(list_tool_names(self.server(clock))) == [
            "list_sessions", "query_logs", "save_conversation",
        ]

    def test_save_then_query_and_list(self, clock):
        server = self.server(clock)

        saved = call(server, "save_conversation", {
            "messages": [
                {"role": "user", "content": "Where is my order?"},
                {"role": "assistant", "content": "It ships tomorrow"},
            ],
            "session_id": "mcp_session",
        })
        assert saved.isError is False
        assert saved.content[0].text.startswith("✓ Saved 2 messages to session mcp_session")
        assert (self.log_dir / "2025-10-04.jsonl").exists()

        queried = call(server, "query_logs", {"keyword": "ORDER"})
        assert queried.isError is False
        text = queried.content[0].text
        assert text.startswith("Found 1 matching log entries:\n\n")
        entries = json.loads(text.split("\n\n", 1)[1])
        assert entries[0]["message"] == "Where is my order?"

        listed = call(server, "list_sessions", {"limit": 5})
        assert listed.isError is False
        sessions = json.loads(listed.content[0].text.split("\n\n", 1)[1])
        assert sessions[0]["session_id"] == "mcp_session"
        assert sessions[0]["message_count"] == 2

    def test_invalid_batch_is_tool_error(self, clock):
        """Handler failures come back flagged as errors, not as crashes."""
        result = call(self.server(clock), "save_conversation", {
            "messages": [{"role": "system", "content": "hi"}],
        })

        assert result.isError is True
        assert "Error saving conversation" in result.content[0].text
        assert not (self.log_dir / "2025-10-04.jsonl").exists()

    def test_invalid_limit_is_tool_error(self, clock):
        result = call(self.server(clock), "list_sessions", {"limit": 0})

        assert result.isError is True
        assert "limit" in result.content[0].text


class TestSseMount:
    """Test that the SSE transport is served next to the HTTP routes."""

    @pytest.fixture
    def client(self, clock):
        with tempfile.TemporaryDirectory() as temp_dir:
            repository = LogRepository(StoreConfig(log_dir=Path(temp_dir)), clock=clock)
            with TestClient(create_app(repository)) as test_client:
                yield test_client

    def test_health_not_shadowed(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_message_endpoint_requires_session(self, client):
        """Posting outside an SSE session is refused by the transport."""
        response = client.post("/messages/", json={})

        assert response.status_code == 400
