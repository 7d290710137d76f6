"""
CLI interface for Session Logger.

Provides command-line access to saving, querying and listing logs, and
runs the HTTP server.
"""

import json
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import typer
import uvicorn
import yaml
from rich.console import Console
from rich.table import Table

from session_logger.config.loader import load_config
from session_logger.config.log_setup import configure_logging
from session_logger.core.errors import ValidationError
from session_logger.core.query import QueryFilters
from session_logger.service.app import create_app
from session_logger.storage.repository import LogRepository, get_repository, reset_repository

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

MESSAGE_PREVIEW_CHARS = 60


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML store configuration"
    ),
    log_dir: Optional[Path] = typer.Option(
        None,
        "--log-dir",
        "-d",
        help="Directory holding the log partitions"
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
):
    """Session Logger CLI."""
    try:
        store_config = load_config(config)
        overrides = {}
        if log_dir is not None:
            overrides["log_dir"] = log_dir
        if log_level is not None:
            overrides["log_level"] = log_level.upper()
        if overrides:
            store_config = replace(store_config, **overrides)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    configure_logging(store_config.log_level)
    reset_repository()
    ctx.obj = get_repository(store_config)

    if ctx.invoked_subcommand is None:
        console.print("Session Logger - Use --help to see available commands")


def _read_messages(source: str) -> Any:
    if source == "-":
        return json.load(sys.stdin)
    with open(source, 'r', encoding='utf-8') as f:
        return json.load(f)


@app.command()
def save(
    ctx: typer.Context,
    messages_file: str = typer.Argument(
        ...,
        help="JSON file with a list of {role, content} messages, or - for stdin"
    ),
    session_id: Optional[str] = typer.Option(
        None,
        "--session-id",
        "-s",
        help="Session to append to (generated when omitted)"
    ),
    user_id: Optional[str] = typer.Option(
        None,
        "--user-id",
        "-u",
        help="User identifier"
    ),
    metadata: Optional[str] = typer.Option(
        None,
        "--metadata",
        "-m",
        help="Metadata as a JSON object, e.g. '{\"model\": \"gpt-4\"}'"
    )
):
    """Append a batch of messages to today's log partition."""
    repository: LogRepository = ctx.obj
    try:
        messages = _read_messages(messages_file)
        meta = json.loads(metadata) if metadata else None
        result = repository.save_conversation(
            messages,
            session_id=session_id,
            user_id=user_id,
            metadata=meta
        )
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Invalid input:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except OSError as e:
        console.print(f"[red]Error saving conversation:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(
        f"[green]✓[/] Saved {result.message_count} messages to session {result.session_id}"
    )
    console.print(f"Log file: {result.log_file_path}")
    console.print(f"Timestamp: {result.timestamp}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def query(
    ctx: typer.Context,
    session_id: Optional[str] = typer.Option(None, "--session-id", "-s", help="Filter by session ID"),
    user_id: Optional[str] = typer.Option(None, "--user-id", "-u", help="Filter by user ID"),
    keyword: Optional[str] = typer.Option(
        None,
        "--keyword",
        "-k",
        help="Case-insensitive substring of the message"
    ),
    start_date: Optional[str] = typer.Option(
        None,
        "--start-date",
        help="Inclusive lower bound on the timestamp, e.g. 2025-10-01"
    ),
    end_date: Optional[str] = typer.Option(
        None,
        "--end-date",
        help="Inclusive upper bound on the timestamp, e.g. 2025-10-04T23:59:59"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum number of entries"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table")
):
    """Search saved log entries."""
    repository: LogRepository = ctx.obj
    filters = QueryFilters(
        session_id=session_id,
        user_id=user_id,
        keyword=keyword,
        start_date=start_date,
        end_date=end_date
    )
    try:
        result = repository.query_logs(filters, limit=limit)
    except ValidationError as e:
        console.print(f"[red]Invalid input:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except OSError as e:
        console.print(f"[red]Error querying logs:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(json.dumps([entry.to_dict() for entry in result.entries], indent=2, ensure_ascii=False))
        sys.exit(EXIT_CODE_PASS)

    console.print(f"\n[bold]Found {result.count} matching log entries[/bold]")
    if not result.entries:
        sys.exit(EXIT_CODE_PASS)

    table = Table()
    table.add_column("Timestamp")
    table.add_column("Session")
    table.add_column("Role")
    table.add_column("Tokens", justify="right")
    table.add_column("Message")
    for entry in result.entries:
        table.add_row(
            entry.timestamp,
            entry.session_id,
            entry.role,
            str(entry.tokens),
            _preview(entry.message)
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def sessions(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum number of sessions"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of a table")
):
    """List saved sessions, most recently active first."""
    repository: LogRepository = ctx.obj
    try:
        summaries = repository.list_sessions(limit=limit)
    except ValidationError as e:
        console.print(f"[red]Invalid input:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except OSError as e:
        console.print(f"[red]Error listing sessions:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if as_json:
        typer.echo(json.dumps([s.to_dict() for s in summaries], indent=2, ensure_ascii=False))
        sys.exit(EXIT_CODE_PASS)

    console.print(f"\n[bold]Found {len(summaries)} sessions[/bold]")
    if not summaries:
        sys.exit(EXIT_CODE_PASS)

    table = Table()
    table.add_column("Session")
    table.add_column("User")
    table.add_column("Messages", justify="right")
    table.add_column("First seen")
    table.add_column("Last seen")
    for summary in summaries:
        table.add_row(
            summary.session_id,
            summary.user_id or "-",
            str(summary.message_count),
            summary.first_timestamp,
            summary.last_timestamp
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(
        int(os.getenv("PORT", "3000")),
        "--port",
        "-p",
        help="Port to listen on (default: $PORT or 3000)"
    )
):
    """Run the HTTP server exposing the log tools over MCP (SSE at /sse)."""
    repository: LogRepository = ctx.obj
    console.print(f"Session Logger running on http://{host}:{port}")
    console.print(f"SSE endpoint: http://{host}:{port}/sse")
    console.print(f"Log directory: {repository.config.log_dir}")
    uvicorn.run(create_app(repository), host=host, port=port, log_config=None)


def _preview(message: str) -> str:
    """Single-line preview of a message for table output."""
    flat = " ".join(message.split())
    if len(flat) <= MESSAGE_PREVIEW_CHARS:
        return flat
    return flat[:MESSAGE_PREVIEW_CHARS - 1] + "…"


if __name__ == "__main__":
    app()
